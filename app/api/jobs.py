"""
Job Order API Routes Blueprint

Job orders and their estimated/actual cost breakdowns:
- /api/jobs                                   - list / create
- /api/jobs/<id>                              - get / update / delete
- /api/jobs/<id>/costs                        - both breakdowns plus profitability
- /api/jobs/<id>/costs/<kind>/edits           - preview edits without saving
- /api/jobs/<id>/costs/<kind>                 - save a breakdown
- /api/jobs/<id>/costs/copy-estimated         - seed actual from estimate
- /api/jobs/<id>/costs/<kind>/pdf             - job cost sheet
- /api/jobs/<id>/costs/analysis               - AI drafted cost analysis
"""

import io
import logging
from flask import Blueprint, request, jsonify, send_file, current_app

from app.utils import get_organization_id, get_json_body
from database.connection import get_db_session
from services.cost_engine import apply_edits, grand_total, recompute, subtotal
from services.cost_sheet_pdf import cost_sheet_filename, render_cost_sheet
from services.expense_repository import ExpenseRepository
from services.job_order_repository import JobOrderRepository, cost_breakdown_for
from services.profitability import job_cost_summary, summarize_profitability
from validators import (
    format_validation_error,
    validate_breakdown_request,
    validate_cost_edits_request,
    validate_cost_kind,
    validate_job_order_request,
)

logger = logging.getLogger(__name__)

jobs_bp = Blueprint('jobs_bp', __name__)


def _job_not_found(job_id):
    return jsonify({'success': False, 'error': f'Job order {job_id} not found'}), 404


def _costs_payload(job):
    """Normalized breakdowns of a job order dict with their totals."""
    estimated = recompute(cost_breakdown_for(job, 'estimated'))
    actual = cost_breakdown_for(job, 'actual')
    if actual is not None:
        actual = recompute(actual)

    def side(breakdown):
        if breakdown is None:
            return None
        return {
            'breakdown': breakdown.to_dict(),
            'subtotal': subtotal(breakdown),
            'grand_total': grand_total(breakdown),
        }

    return {
        'job_id': job['id'],
        'estimated': side(estimated),
        'actual': side(actual),
        'summary': job_cost_summary(job),
    }


# ============================================================================
# JOB ORDERS
# ============================================================================

@jobs_bp.route('/api/jobs', methods=['GET', 'POST'])
def handle_jobs():
    """List or create job orders"""
    try:
        with get_db_session() as session:
            repo = JobOrderRepository(session, get_organization_id())
            if request.method == 'GET':
                jobs = repo.list_jobs(
                    status=request.args.get('status'),
                    customer_id=request.args.get('customer_id')
                )
                return jsonify({'success': True, 'jobs': jobs, 'count': len(jobs)})

            data = get_json_body()
            is_valid, error = validate_job_order_request(data)
            if not is_valid:
                return jsonify(format_validation_error('job', error)), 400

            job = repo.create_job(data)
            return jsonify({'success': True, 'job': job}), 201
    except Exception as e:
        logger.error(f"Error handling job orders: {str(e)}")
        return jsonify({'success': False, 'error': str(e)}), 500


@jobs_bp.route('/api/jobs/<job_id>', methods=['GET', 'PUT', 'DELETE'])
def handle_job(job_id):
    """Single job order management"""
    try:
        with get_db_session() as session:
            repo = JobOrderRepository(session, get_organization_id())
            if request.method == 'GET':
                job = repo.get_job(job_id)
                if not job:
                    return _job_not_found(job_id)
                return jsonify({'success': True, 'job': job})

            elif request.method == 'PUT':
                data = get_json_body()
                is_valid, error = validate_job_order_request(data, partial=True)
                if not is_valid:
                    return jsonify(format_validation_error('job', error)), 400
                job = repo.update_job(job_id, data)
                if not job:
                    return _job_not_found(job_id)
                return jsonify({'success': True, 'job': job})

            if not repo.delete_job(job_id):
                return _job_not_found(job_id)
            return jsonify({'success': True, 'message': 'Job order deleted'})
    except Exception as e:
        logger.error(f"Error handling job order {job_id}: {str(e)}")
        return jsonify({'success': False, 'error': str(e)}), 500


# ============================================================================
# COST BREAKDOWNS
# ============================================================================

@jobs_bp.route('/api/jobs/<job_id>/costs', methods=['GET'])
def get_job_costs(job_id):
    """Both cost breakdowns of a job, normalized, with profitability"""
    try:
        with get_db_session() as session:
            job = JobOrderRepository(session, get_organization_id()).get_job(job_id)
            if not job:
                return _job_not_found(job_id)
            return jsonify({'success': True, **_costs_payload(job)})
    except Exception as e:
        logger.error(f"Error loading costs for job {job_id}: {str(e)}")
        return jsonify({'success': False, 'error': str(e)}), 500


@jobs_bp.route('/api/jobs/<job_id>/costs/<kind>/edits', methods=['POST'])
def preview_cost_edits(job_id, kind):
    """Apply edits to a breakdown and return the result without saving it"""
    is_valid, error = validate_cost_kind(kind)
    if not is_valid:
        return jsonify(format_validation_error('kind', error)), 400

    is_valid, error, edits = validate_cost_edits_request(get_json_body())
    if not is_valid:
        return jsonify(format_validation_error('edits', error)), 400

    try:
        with get_db_session() as session:
            org_id = get_organization_id()
            job = JobOrderRepository(session, org_id).get_job(job_id)
            if not job:
                return _job_not_found(job_id)

            # An actual side that was never saved starts from an empty breakdown
            current = job.get(f'{kind}_cost_breakdown')
            result = apply_edits(current, edits, ExpenseRepository(session, org_id))
            profit = summarize_profitability(result.to_dict(), job.get('price'))

            return jsonify({
                'success': True,
                'kind': kind,
                'breakdown': result.to_dict(),
                'subtotal': subtotal(result),
                'grand_total': grand_total(result),
                'profitability': profit.to_dict(),
            })
    except Exception as e:
        logger.error(f"Error applying cost edits for job {job_id}: {str(e)}")
        return jsonify({'success': False, 'error': str(e)}), 500


@jobs_bp.route('/api/jobs/<job_id>/costs/<kind>', methods=['PUT'])
def save_job_costs(job_id, kind):
    """Recompute and persist one side of a job's costing"""
    is_valid, error = validate_cost_kind(kind)
    if not is_valid:
        return jsonify(format_validation_error('kind', error)), 400

    data = get_json_body()
    is_valid, error = validate_breakdown_request(data)
    if not is_valid:
        return jsonify(format_validation_error('breakdown', error)), 400

    try:
        with get_db_session() as session:
            job = JobOrderRepository(session, get_organization_id()).save_cost_breakdown(
                job_id, kind, data['breakdown']
            )
            if not job:
                return _job_not_found(job_id)
            return jsonify({'success': True, 'job': job, **_costs_payload(job)})
    except Exception as e:
        logger.error(f"Error saving {kind} costs for job {job_id}: {str(e)}")
        return jsonify({'success': False, 'error': str(e)}), 500


@jobs_bp.route('/api/jobs/<job_id>/costs/copy-estimated', methods=['POST'])
def copy_estimated_costs(job_id):
    """Replace the actual breakdown with a copy of the estimate"""
    try:
        with get_db_session() as session:
            job = JobOrderRepository(session, get_organization_id()).copy_estimated_to_actual(job_id)
            if not job:
                return _job_not_found(job_id)
            return jsonify({'success': True, 'job': job, **_costs_payload(job)})
    except Exception as e:
        logger.error(f"Error copying estimated costs for job {job_id}: {str(e)}")
        return jsonify({'success': False, 'error': str(e)}), 500


@jobs_bp.route('/api/jobs/<job_id>/costs/<kind>/pdf', methods=['GET'])
def export_cost_sheet(job_id, kind):
    """Download the job cost sheet as PDF"""
    is_valid, error = validate_cost_kind(kind)
    if not is_valid:
        return jsonify(format_validation_error('kind', error)), 400

    try:
        with get_db_session() as session:
            job = JobOrderRepository(session, get_organization_id()).get_job(job_id)
        if not job:
            return _job_not_found(job_id)

        breakdown = cost_breakdown_for(job, kind)
        if breakdown is None:
            return jsonify({'success': False, 'error': f'Job order {job_id} has no {kind} costs yet'}), 404

        pdf_bytes = render_cost_sheet(
            job,
            recompute(breakdown),
            kind=kind,
            summary=job_cost_summary(job),
            company_name=current_app.config.get('COMPANY_NAME', 'Print Shop'),
            currency=current_app.config.get('CURRENCY_SYMBOL', '$')
        )
        return send_file(
            io.BytesIO(pdf_bytes),
            mimetype='application/pdf',
            as_attachment=True,
            download_name=cost_sheet_filename(job)
        )
    except Exception as e:
        logger.error(f"Error exporting cost sheet for job {job_id}: {str(e)}")
        return jsonify({'success': False, 'error': str(e)}), 500


@jobs_bp.route('/api/jobs/<job_id>/costs/analysis', methods=['POST'])
def analyze_job_costs(job_id):
    """AI drafted cost analysis; read-only with respect to the stored job"""
    from ai_service import AIServiceError
    from app_init import get_ai_service

    ai_service = get_ai_service(current_app)
    if not ai_service.is_available():
        return jsonify({
            'success': False,
            'error': 'AI service not configured',
            'message': 'Set ANTHROPIC_API_KEY to enable cost analysis'
        }), 503

    try:
        with get_db_session() as session:
            job = JobOrderRepository(session, get_organization_id()).get_job(job_id)
        if not job:
            return _job_not_found(job_id)

        estimated = recompute(cost_breakdown_for(job, 'estimated'))
        analysis = ai_service.draft_cost_analysis(job, estimated.to_dict(), job_cost_summary(job))
        return jsonify({'success': True, 'job_id': job_id, 'analysis': analysis})
    except AIServiceError as e:
        logger.error(f"AI cost analysis failed for job {job_id}: {str(e)}")
        return jsonify({'success': False, 'error': 'AI service unavailable', 'message': str(e)}), 503
    except Exception as e:
        logger.error(f"Error analyzing costs for job {job_id}: {str(e)}")
        return jsonify({'success': False, 'error': str(e)}), 500
