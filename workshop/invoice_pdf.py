"""
Printable invoice PDF.
Content: shop header, invoice number and date, customer and vehicle snapshot,
labor line plus frozen part lines (SN, Part, Unit Price, Qty, Total),
subtotal, discount, tax, total, amount paid, balance and status.
"""
from io import BytesIO

from django.conf import settings
from reportlab.lib.pagesizes import A4
from reportlab.pdfgen import canvas as pdf_canvas


def _money(value):
    return f'{settings.CURRENCY_SYMBOL} {value:,.2f}'


def invoice_pdf_bytes(invoice):
    """invoice: Invoice with lines and payments available (prefetch recommended)."""
    buf = BytesIO()
    c = pdf_canvas.Canvas(buf, pagesize=A4)
    width, height = A4
    left = 50
    right_col = 350
    y = height - 40

    c.setFont('Helvetica-Bold', 14)
    c.drawString(left, y, settings.SHOP_NAME)
    y -= 16
    c.setFont('Helvetica', 9)
    for line in (settings.SHOP_ADDRESS or '').split('\n')[:3]:
        if line:
            c.drawString(left, y, line[:80])
            y -= 12
    if settings.SHOP_PHONE:
        c.drawString(left, y, settings.SHOP_PHONE)
        y -= 12

    c.setFont('Helvetica-Bold', 11)
    c.drawString(right_col, height - 40, f'Invoice: {invoice.invoice_number}')
    c.setFont('Helvetica', 9)
    c.drawString(right_col, height - 54, f'Date: {invoice.created_at.strftime("%Y-%m-%d %H:%M")}')
    c.drawString(right_col, height - 66, f'Job Order: {invoice.job_number}')

    y = min(y, height - 90) - 10
    c.drawString(left, y, f'Customer: {invoice.customer_name}')
    y -= 12
    if invoice.customer_phone:
        c.drawString(left, y, f'Phone: {invoice.customer_phone}')
        y -= 12
    c.drawString(left, y, f'Vehicle: {invoice.vehicle_description}  |  Plate: {invoice.plate_number}')
    y -= 22

    c.setFont('Helvetica-Bold', 9)
    c.drawString(left, y, 'SN')
    c.drawString(left + 30, y, 'Description')
    c.drawString(300, y, 'Unit Price')
    c.drawString(380, y, 'Qty')
    c.drawString(430, y, 'Total')
    y -= 14
    c.setFont('Helvetica', 9)

    rows = [('Labor', invoice.labor_cost, 1, invoice.labor_cost)]
    rows += [
        (f'{line.part_name} ({line.part_number})', line.unit_price, line.quantity, line.line_total)
        for line in invoice.lines.all()
    ]
    for sn, (desc, price, qty, total) in enumerate(rows, start=1):
        c.drawString(left, y, str(sn))
        c.drawString(left + 30, y, desc[:45])
        c.drawString(300, y, _money(price))
        c.drawString(380, y, str(qty))
        c.drawString(430, y, _money(total))
        y -= 12
        if y < 140:
            c.showPage()
            y = height - 40
            c.setFont('Helvetica', 9)

    y -= 8
    c.drawString(right_col, y, f'Subtotal: {_money(invoice.sub_total)}')
    y -= 12
    if invoice.discount:
        c.drawString(right_col, y, f'Discount: -{_money(invoice.discount)}')
        y -= 12
    if invoice.tax:
        c.drawString(right_col, y, f'Tax: {_money(invoice.tax)}')
        y -= 12
    c.setFont('Helvetica-Bold', 10)
    c.drawString(right_col, y, f'Total: {_money(invoice.total_amount)}')
    y -= 14
    c.setFont('Helvetica', 9)
    c.drawString(right_col, y, f'Paid: {_money(invoice.amount_paid)}')
    y -= 12
    c.drawString(right_col, y, f'Balance: {_money(invoice.balance)}')
    y -= 12
    c.drawString(right_col, y, f'Status: {invoice.get_status_display()}')

    c.showPage()
    c.save()
    buf.seek(0)
    return buf.getvalue()
