from io import BytesIO

from django.utils import timezone
from django.utils.html import escape
from reportlab.lib import colors
from reportlab.lib.enums import TA_CENTER, TA_RIGHT
from reportlab.lib.pagesizes import A4
from reportlab.lib.styles import ParagraphStyle, getSampleStyleSheet
from reportlab.lib.units import mm
from reportlab.platypus import Paragraph, SimpleDocTemplate, Spacer, Table, TableStyle

from .store_utils import format_currency


def invoice_items(order):
    """Line items joined with the product name, including archived products."""
    return [
        {
            'name': item.product.name,
            'quantity': item.quantity,
            'price_at_purchase': item.price_at_purchase,
            'subtotal': item.subtotal,
        }
        for item in order.items.select_related('product').order_by('pk')
    ]


def invoice_filename(order):
    return f"invoice-{order.pk}.pdf"


def render_invoice_pdf(order, items=None):
    """
    Render ``order`` as a PDF and return the bytes.

    The total printed is the stored ``order.total_amount``; it is not
    recomputed from the items.
    """
    if items is None:
        items = invoice_items(order)

    buffer = BytesIO()
    doc = SimpleDocTemplate(
        buffer,
        pagesize=A4,
        leftMargin=18 * mm,
        rightMargin=18 * mm,
        topMargin=18 * mm,
        bottomMargin=18 * mm,
        title=f"Invoice #{order.pk}",
    )

    styles = getSampleStyleSheet()
    title_style = ParagraphStyle('InvoiceTitle', parent=styles['Title'], alignment=TA_CENTER)
    total_style = ParagraphStyle(
        'InvoiceTotal', parent=styles['Heading2'], alignment=TA_RIGHT
    )

    created = timezone.localtime(order.created_at)
    customer = order.user
    story = [
        Paragraph(f"Invoice #{order.pk}", title_style),
        Spacer(1, 6 * mm),
        Paragraph(f"Date: {created:%d/%m/%Y}", styles['Normal']),
        Paragraph(f"Status: {order.get_status_display()}", styles['Normal']),
        Paragraph(f"Customer: {escape(customer.name)} ({escape(customer.email)})", styles['Normal']),
        Spacer(1, 8 * mm),
    ]

    rows = [['Product', 'Quantity', 'Unit price', 'Subtotal']]
    for item in items:
        rows.append([
            Paragraph(escape(item['name']), styles['Normal']),
            str(item['quantity']),
            format_currency(item['price_at_purchase']),
            format_currency(item['subtotal']),
        ])

    table = Table(rows, colWidths=[80 * mm, 22 * mm, 36 * mm, 36 * mm], repeatRows=1)
    table.setStyle(TableStyle([
        ('FONTNAME', (0, 0), (-1, 0), 'Helvetica-Bold'),
        ('LINEBELOW', (0, 0), (-1, 0), 0.75, colors.black),
        ('ALIGN', (1, 0), (-1, -1), 'RIGHT'),
        ('VALIGN', (0, 0), (-1, -1), 'MIDDLE'),
        ('ROWBACKGROUNDS', (0, 1), (-1, -1), [colors.white, colors.whitesmoke]),
    ]))
    story += [
        table,
        Spacer(1, 8 * mm),
        Paragraph(f"Total: {format_currency(order.total_amount)}", total_style),
    ]

    doc.build(story)
    return buffer.getvalue()
