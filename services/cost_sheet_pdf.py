"""
Job Cost Sheet PDF export.

Renders already-computed figures; no costing logic lives here.
"""

import io
import logging
from datetime import datetime
from typing import Any, Dict, Optional

from reportlab.lib import colors
from reportlab.lib.pagesizes import A4
from reportlab.lib.styles import getSampleStyleSheet, ParagraphStyle
from reportlab.lib.units import inch
from reportlab.platypus import SimpleDocTemplate, Paragraph, Spacer, Table, TableStyle
from werkzeug.utils import secure_filename

from services.cost_engine import grand_total, subtotal
from services.cost_models import CATEGORY_LABELS, CostBreakdown

logger = logging.getLogger(__name__)

BRAND_COLOR = colors.HexColor('#1E3A8A')


def _money(value: float, currency: str) -> str:
    if value < 0:
        return f"-{currency}{abs(value):,.2f}"
    return f"{currency}{value:,.2f}"


def _qty(value: float) -> str:
    return f"{value:g}"


def cost_sheet_filename(job: Dict[str, Any]) -> str:
    """Download name for a job's cost sheet."""
    name = secure_filename(job.get('job_name') or '') or 'job'
    return f"Job_Cost_Sheet_{name}.pdf"


def line_item_rows(breakdown: CostBreakdown, currency: str = '$'):
    """
    Table rows for every non-zero cost line

    Returns:
        List of [item, qty/hours, rate, total] rows, header excluded
    """
    rows = []
    for name, item in breakdown.standard_items():
        if item.total:
            rows.append([CATEGORY_LABELS[name], _qty(item.quantity),
                         _money(item.rate, currency), _money(item.total, currency)])
    for row in breakdown.labor:
        if row.total:
            rows.append([f"Labor: {row.description or 'Labor'}", f"{_qty(row.hours)} h",
                         _money(row.rate, currency), _money(row.total, currency)])
    for row in breakdown.other_expenses:
        if row.total:
            rows.append([row.description or 'Other', _qty(row.quantity),
                         _money(row.rate, currency), _money(row.total, currency)])
    return rows


def render_cost_sheet(job: Dict[str, Any], breakdown: CostBreakdown, kind: str = 'estimated',
                      summary: Optional[Dict[str, Any]] = None,
                      company_name: str = 'Print Shop', currency: str = '$') -> bytes:
    """
    Build the job cost sheet PDF

    Args:
        job: Job order dict
        breakdown: Recomputed breakdown to print
        kind: 'estimated' or 'actual', used in the title
        summary: Optional job_cost_summary() result for the profitability block
        company_name: Printed in the header
        currency: Currency symbol

    Returns:
        PDF document bytes
    """
    buffer = io.BytesIO()
    doc = SimpleDocTemplate(buffer, pagesize=A4, title=f"Job Cost Sheet - {job.get('job_name', '')}")
    story = []
    styles = getSampleStyleSheet()

    title_style = ParagraphStyle(
        'SheetTitle',
        parent=styles['Heading1'],
        fontSize=20,
        textColor=BRAND_COLOR,
        spaceAfter=6,
        alignment=1
    )
    heading_style = ParagraphStyle(
        'SheetHeading',
        parent=styles['Heading2'],
        fontSize=13,
        textColor=BRAND_COLOR,
        spaceAfter=8
    )

    story.append(Paragraph(company_name, styles['Normal']))
    story.append(Paragraph(f"{kind.capitalize()} Job Cost Sheet", title_style))
    story.append(Spacer(1, 0.2*inch))

    info = [
        ['Job:', job.get('job_name') or 'N/A'],
        ['Customer:', job.get('customer_name') or 'N/A'],
        ['Order Date:', job.get('order_date') or 'N/A'],
        ['Due Date:', job.get('due_date') or 'N/A'],
        ['Status:', (job.get('status') or 'pending').upper()],
        ['Printed:', datetime.now().strftime('%B %d, %Y')],
    ]
    info_table = Table(info, colWidths=[1.5*inch, 4.5*inch])
    info_table.setStyle(TableStyle([
        ('FONTNAME', (0, 0), (0, -1), 'Helvetica-Bold'),
        ('FONTSIZE', (0, 0), (-1, -1), 10),
        ('TEXTCOLOR', (0, 0), (0, -1), colors.HexColor('#666666')),
        ('BOTTOMPADDING', (0, 0), (-1, -1), 6),
    ]))
    story.append(info_table)
    story.append(Spacer(1, 0.3*inch))

    story.append(Paragraph("Cost Breakdown", heading_style))
    rows = line_item_rows(breakdown, currency)
    items_data = [['Item', 'Qty', 'Rate', 'Total']] + (rows or [['No costs recorded', '', '', '']])
    items_table = Table(items_data, colWidths=[3*inch, 0.9*inch, 1.2*inch, 1.2*inch])
    items_table.setStyle(TableStyle([
        ('BACKGROUND', (0, 0), (-1, 0), BRAND_COLOR),
        ('TEXTCOLOR', (0, 0), (-1, 0), colors.whitesmoke),
        ('FONTNAME', (0, 0), (-1, 0), 'Helvetica-Bold'),
        ('ALIGN', (1, 0), (-1, -1), 'RIGHT'),
        ('FONTSIZE', (0, 0), (-1, -1), 10),
        ('BOTTOMPADDING', (0, 0), (-1, 0), 8),
        ('LINEBELOW', (0, 1), (-1, -1), 0.25, colors.HexColor('#DDDDDD')),
    ]))
    story.append(items_table)
    story.append(Spacer(1, 0.2*inch))

    overhead = breakdown.overhead
    totals = [
        ['Subtotal:', _money(subtotal(breakdown), currency)],
        [f"Overhead ({_qty(overhead.percentage)}%):", _money(overhead.total, currency)],
        ['Total Cost:', _money(grand_total(breakdown), currency)],
    ]
    totals_table = Table(totals, colWidths=[4.9*inch, 1.4*inch])
    totals_table.setStyle(TableStyle([
        ('ALIGN', (0, 0), (-1, -1), 'RIGHT'),
        ('FONTNAME', (0, -1), (-1, -1), 'Helvetica-Bold'),
        ('LINEABOVE', (0, -1), (-1, -1), 1, colors.black),
    ]))
    story.append(totals_table)

    if summary:
        figures = summary.get(kind) or {}
        story.append(Spacer(1, 0.3*inch))
        story.append(Paragraph("Profitability", heading_style))
        profit_rows = [
            ['Price:', _money(summary.get('price', 0), currency)],
            ['Profit:', _money(figures.get('profit', 0), currency)],
            ['Margin:', f"{figures.get('margin_percent', 0):.1f}%"],
        ]
        variance = summary.get('variance')
        if variance:
            profit_rows.append(['Variance:', f"{_money(variance['amount'], currency)} ({variance['label']})"])
        profit_table = Table(profit_rows, colWidths=[1.5*inch, 4.5*inch])
        profit_table.setStyle(TableStyle([
            ('FONTNAME', (0, 0), (0, -1), 'Helvetica-Bold'),
            ('FONTSIZE', (0, 0), (-1, -1), 10),
        ]))
        story.append(profit_table)

    doc.build(story)
    logger.info(f"Rendered {kind} cost sheet for job {job.get('id')}")
    return buffer.getvalue()
