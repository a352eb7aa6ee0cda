"""
Tests for the job order and cost breakdown API
"""
import pytest
from unittest.mock import Mock, patch

from ai_service import AIServiceError


def create_job(client, **fields):
    payload = {'job_name': 'Annual report', 'price': 2000}
    payload.update(fields)
    response = client.post('/api/jobs', json=payload)
    assert response.status_code == 201
    return response.get_json()['job']


@pytest.mark.integration
class TestJobCrud:
    """Tests for /api/jobs"""

    def test_create_and_get(self, client):
        """Test creating then fetching a job"""
        job = create_job(client, description='40 pages, saddle stitched')
        response = client.get(f"/api/jobs/{job['id']}")
        assert response.status_code == 200
        assert response.get_json()['job']['description'] == '40 pages, saddle stitched'

    def test_create_validation(self, client):
        """Test a job without a name is rejected"""
        response = client.post('/api/jobs', json={'price': 10})
        assert response.status_code == 400
        body = response.get_json()
        assert body['error'] == 'Validation Error'
        assert 'job_name' in body['message']

    def test_list(self, client):
        """Test listing with a status filter"""
        create_job(client)
        create_job(client, job_name='Leaflets', status='completed')
        body = client.get('/api/jobs?status=completed').get_json()
        assert body['count'] == 1
        assert body['jobs'][0]['job_name'] == 'Leaflets'

    def test_update(self, client):
        """Test updating status"""
        job = create_job(client)
        response = client.put(f"/api/jobs/{job['id']}", json={'status': 'printing'})
        assert response.status_code == 200
        assert response.get_json()['job']['status'] == 'printing'

    def test_update_rejects_bad_status(self, client):
        """Test an unknown status is a validation error"""
        job = create_job(client)
        response = client.put(f"/api/jobs/{job['id']}", json={'status': 'lost'})
        assert response.status_code == 400

    def test_delete(self, client):
        """Test deleting a job"""
        job = create_job(client)
        assert client.delete(f"/api/jobs/{job['id']}").status_code == 200
        assert client.get(f"/api/jobs/{job['id']}").status_code == 404

    def test_unknown_job(self, client):
        """Test 404s for a job that does not exist"""
        assert client.get('/api/jobs/missing').status_code == 404
        assert client.put('/api/jobs/missing', json={'price': 1}).status_code == 404
        assert client.get('/api/jobs/missing/costs').status_code == 404


@pytest.mark.integration
class TestJobCosts:
    """Tests for reading and saving cost breakdowns"""

    def test_costs_of_legacy_job(self, client, legacy_breakdown):
        """Test a legacy estimate is served in the current shape"""
        job = create_job(client, price=500, estimated_cost_breakdown=legacy_breakdown)
        body = client.get(f"/api/jobs/{job['id']}/costs").get_json()
        assert body['estimated']['breakdown']['paper']['total'] == 100
        assert body['estimated']['grand_total'] == pytest.approx(415)
        assert body['actual'] is None
        assert body['summary']['estimated']['profit'] == pytest.approx(85)
        assert body['summary']['variance'] is None

    def test_save_estimate(self, client, current_breakdown):
        """Test PUT recomputes and persists"""
        job = create_job(client)
        current_breakdown['paper']['total'] = 0
        response = client.put(f"/api/jobs/{job['id']}/costs/estimated",
                              json={'breakdown': current_breakdown})
        assert response.status_code == 200
        body = response.get_json()
        assert body['job']['estimated_cost'] == pytest.approx(1375)
        assert body['estimated']['breakdown']['paper']['total'] == 500

    def test_save_requires_breakdown(self, client):
        """Test PUT without a breakdown object"""
        job = create_job(client)
        response = client.put(f"/api/jobs/{job['id']}/costs/estimated", json={'breakdown': 5})
        assert response.status_code == 400

    def test_unknown_kind(self, client):
        """Test only estimated/actual are routable kinds"""
        job = create_job(client)
        response = client.put(f"/api/jobs/{job['id']}/costs/budget", json={'breakdown': {}})
        assert response.status_code == 400
        assert response.get_json()['field'] == 'kind'

    def test_save_with_out_of_range_numbers(self, client):
        """Test huge integers and overflowing products are stored as 0"""
        job = create_job(client)
        huge = '1' + '0' * 400
        body = ('{"breakdown": {"paper": {"quantity": ' + huge + ', "rate": 2},'
                ' "ctp": {"quantity": 1e200, "rate": 1e200}}}')
        response = client.put(f"/api/jobs/{job['id']}/costs/estimated",
                              data=body, content_type='application/json')
        assert response.status_code == 200
        saved = response.get_json()
        assert saved['estimated']['breakdown']['paper']['total'] == 0
        assert saved['estimated']['breakdown']['ctp']['total'] == 0
        assert saved['estimated']['grand_total'] == 0
        assert saved['job']['estimated_cost'] == 0

    def test_edit_preview_with_overflow(self, client):
        """Test an edit preview never returns inf or NaN"""
        job = create_job(client)
        edits = [
            {'op': 'set_standard', 'category': 'paper', 'field': 'quantity', 'value': 1e200},
            {'op': 'set_standard', 'category': 'paper', 'field': 'rate', 'value': 1e200},
        ]
        response = client.post(f"/api/jobs/{job['id']}/costs/estimated/edits", json={'edits': edits})
        assert response.status_code == 200
        assert b'NaN' not in response.data
        assert b'Infinity' not in response.data
        assert response.get_json()['grand_total'] == 0

    def test_variance_after_actual_saved(self, client, current_breakdown):
        """Test actual costs produce a variance"""
        job = create_job(client, estimated_cost_breakdown=current_breakdown)
        actual = dict(current_breakdown, overhead={'quantity': 20})
        body = client.put(f"/api/jobs/{job['id']}/costs/actual", json={'breakdown': actual}).get_json()
        assert body['summary']['actual']['total_cost'] == pytest.approx(1500)
        assert body['summary']['variance'] == {'amount': pytest.approx(-125), 'label': 'over budget'}


@pytest.mark.integration
class TestCostEditsPreview:
    """Tests for POST /costs/<kind>/edits"""

    def test_edits_are_not_persisted(self, client):
        """Test preview returns totals and leaves the job alone"""
        job = create_job(client)
        edits = [
            {'op': 'set_standard', 'category': 'paper', 'field': 'quantity', 'value': 10},
            {'op': 'set_standard', 'category': 'paper', 'field': 'rate', 'value': 100},
            {'op': 'add_labor', 'description': 'Design', 'hours': 2, 'rate': 50},
            {'op': 'set_overhead', 'percentage': 10},
        ]
        response = client.post(f"/api/jobs/{job['id']}/costs/estimated/edits", json={'edits': edits})
        assert response.status_code == 200
        body = response.get_json()
        assert body['subtotal'] == pytest.approx(1100)
        assert body['grand_total'] == pytest.approx(1210)
        assert body['profitability']['profit'] == pytest.approx(790)

        stored = client.get(f"/api/jobs/{job['id']}").get_json()['job']
        assert stored['estimated_cost_breakdown'] is None

    def test_select_expense(self, client):
        """Test linking a row to a recorded expense"""
        expense = client.post('/api/expenses', json={'description': 'Foil stamping', 'amount': 220}).get_json()['expense']
        breakdown = {'paper': {'quantity': 1, 'rate': 0},
                     'other_expenses': [{'id': 'row-1', 'description': 'TBD', 'quantity': 3, 'rate': 1}]}
        job = create_job(client, estimated_cost_breakdown=breakdown)

        response = client.post(f"/api/jobs/{job['id']}/costs/estimated/edits", json={'edits': [
            {'op': 'select_expense', 'row_id': 'row-1', 'transaction_id': expense['id']}
        ]})
        row = response.get_json()['breakdown']['other_expenses'][0]
        assert row['description'] == 'Foil stamping'
        assert row['total'] == 220
        assert row['transaction_id'] == expense['id']

    def test_actual_starts_empty(self, client, current_breakdown):
        """Test edits to a never-saved actual side start from scratch"""
        job = create_job(client, estimated_cost_breakdown=current_breakdown)
        response = client.post(f"/api/jobs/{job['id']}/costs/actual/edits", json={'edits': []})
        assert response.get_json()['grand_total'] == 0

    def test_invalid_edit(self, client):
        """Test an unknown operation is a 400"""
        job = create_job(client)
        response = client.post(f"/api/jobs/{job['id']}/costs/estimated/edits",
                               json={'edits': [{'op': 'explode'}]})
        assert response.status_code == 400
        assert 'Unknown edit operation' in response.get_json()['message']


@pytest.mark.integration
class TestCopyEstimated:
    """Tests for POST /costs/copy-estimated"""

    def test_copy(self, client, current_breakdown):
        """Test the actual side mirrors the estimate"""
        job = create_job(client, estimated_cost_breakdown=current_breakdown)
        response = client.post(f"/api/jobs/{job['id']}/costs/copy-estimated")
        assert response.status_code == 200
        body = response.get_json()
        assert body['actual']['breakdown'] == body['estimated']['breakdown']
        assert body['summary']['variance']['label'] == 'on budget'

    def test_copy_unknown_job(self, client):
        """Test copying for a missing job"""
        assert client.post('/api/jobs/missing/costs/copy-estimated').status_code == 404


@pytest.mark.integration
class TestCostSheetExport:
    """Tests for GET /costs/<kind>/pdf"""

    def test_pdf_download(self, client, current_breakdown):
        """Test the estimated cost sheet downloads as a PDF"""
        job = create_job(client, job_name='Spring Catalog', estimated_cost_breakdown=current_breakdown)
        response = client.get(f"/api/jobs/{job['id']}/costs/estimated/pdf")
        assert response.status_code == 200
        assert response.mimetype == 'application/pdf'
        assert response.data.startswith(b'%PDF')
        assert 'Job_Cost_Sheet_Spring_Catalog.pdf' in response.headers['Content-Disposition']

    def test_actual_pdf_without_actual_costs(self, client):
        """Test there is no actual cost sheet before actual costs exist"""
        job = create_job(client)
        assert client.get(f"/api/jobs/{job['id']}/costs/actual/pdf").status_code == 404


@pytest.mark.integration
class TestCostAnalysis:
    """Tests for POST /costs/analysis"""

    def test_unavailable_without_key(self, client):
        """Test 503 when no AI key is configured"""
        job = create_job(client)
        response = client.post(f"/api/jobs/{job['id']}/costs/analysis")
        assert response.status_code == 503

    def test_analysis_leaves_breakdown_untouched(self, app, client, legacy_breakdown):
        """Test the drafted text is returned and the stored estimate is unchanged"""
        job = create_job(client, estimated_cost_breakdown=legacy_breakdown)
        before = client.get(f"/api/jobs/{job['id']}").get_json()['job']

        ai_service = Mock()
        ai_service.is_available.return_value = True
        ai_service.draft_cost_analysis.return_value = 'Printing dominates the cost.'
        app.ai_service = ai_service

        response = client.post(f"/api/jobs/{job['id']}/costs/analysis")
        assert response.status_code == 200
        assert response.get_json()['analysis'] == 'Printing dominates the cost.'

        job_arg, breakdown_arg, summary_arg = ai_service.draft_cost_analysis.call_args[0]
        assert breakdown_arg['printing']['total'] == 200
        assert summary_arg['estimated']['total_cost'] == pytest.approx(415)

        after = client.get(f"/api/jobs/{job['id']}").get_json()['job']
        assert after['estimated_cost_breakdown'] == before['estimated_cost_breakdown']

    def test_ai_failure_is_503(self, app, client):
        """Test an API failure after retries maps to 503"""
        job = create_job(client)
        ai_service = Mock()
        ai_service.is_available.return_value = True
        ai_service.draft_cost_analysis.side_effect = AIServiceError('overloaded')
        app.ai_service = ai_service

        response = client.post(f"/api/jobs/{job['id']}/costs/analysis")
        assert response.status_code == 503


@pytest.mark.integration
class TestErrorHandlers:
    """Tests for JSON error responses"""

    def test_unknown_route(self, client):
        """Test 404s are JSON"""
        response = client.get('/api/nothing-here')
        assert response.status_code == 404
        assert response.get_json()['error'] == 'Not Found'

    def test_wrong_method(self, client):
        """Test 405s are JSON"""
        response = client.patch('/api/jobs')
        assert response.status_code == 405

    def test_security_headers(self, client):
        """Test responses carry security headers"""
        response = client.get('/api/health')
        assert response.headers['X-Content-Type-Options'] == 'nosniff'
