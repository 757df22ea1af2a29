from fpdf import FPDF
from decimal import Decimal
from typing import Any, Dict, Optional
from sqlalchemy.orm import Session
from models.orders import Order
from models.customers import Customer
from crud.orders import get_order_items, get_order_payments
from config import Settings
from utils.formatting import utcnow, ensure_utc, amount_to_words, format_currency
import logging

logger = logging.getLogger(__name__)


class ReceiptNotFound(LookupError):
    pass


class PDF(FPDF):
    def header(self):
        self.set_font('Arial', 'B', 12)
        self.cell(0, 10, 'Receipt', 0, 1, 'C')
        self.ln(5)

    def footer(self):
        self.set_y(-15)
        self.set_font('Arial', 'I', 8)
        self.cell(0, 10, f'Page {self.page_no()}', 0, 0, 'C')


def _text(value) -> str:
    # Core PDF fonts only cover latin-1
    return str(value if value is not None else '').encode('latin-1', 'replace').decode('latin-1')


def build_order_receipt(db: Session, order_id: int, settings: Settings, generated_by: Optional[str] = None) -> Dict[str, Any]:
    """
    Collects everything a printed receipt shows for one order.

    Raises:
        ReceiptNotFound: if the order does not exist (or is deleted).
    """
    row = (
        db.query(Order, Customer)
        .join(Customer, Order.customer_id == Customer.customer_id)
        .filter(Order.order_id == order_id)
        .first()
    )
    if row is None:
        raise ReceiptNotFound("Order not found")
    order, customer = row

    items = get_order_items(db, order_id)
    payments = get_order_payments(db, order_id)
    remaining = Decimal(order.total_amount or 0) - Decimal(order.paid_amount or 0)

    return {
        "businessName": settings.business_name,
        "businessAddress": settings.business_address,
        "businessPhone": settings.business_phone,

        "orderNumber": order.order_number,
        "orderDate": order.order_date,
        "dueDate": order.due_date,
        "deliveryDate": order.delivery_date,
        "status": order.status.value,

        "customerName": customer.customer_name,
        "customerPhone": customer.phone_number,
        "customerEmail": customer.email,
        "customerAddress": customer.address,

        "items": [
            {
                "name": item.item_name,
                "description": item.description,
                "quantity": item.quantity,
                "unitPrice": item.unit_price,
                "totalPrice": item.total_price,
                "color": item.color,
                "size": item.size,
                "specialInstructions": item.special_instructions,
            }
            for item in items
        ],

        "totalAmount": order.total_amount,
        "totalInWords": amount_to_words(order.total_amount),
        "paidAmount": order.paid_amount,
        "remainingAmount": remaining,
        "paymentStatus": order.payment_status.value,
        "paymentMethod": order.payment_method,
        "discount": order.discount,

        "payments": [
            {
                "date": ensure_utc(p.payment_date),
                "amount": p.amount,
                "method": p.payment_method.value,
                "reference": p.reference_number,
                "receiptNumber": p.receipt_number,
            }
            for p in payments
        ],

        "notes": order.notes,
        "generatedAt": utcnow().isoformat(),
        "generatedBy": generated_by or "System",
    }


def render_receipt_pdf(receipt: Dict[str, Any]) -> bytes:
    """Lays out receipt data from build_order_receipt as a one-page PDF."""
    pdf = PDF()
    pdf.add_page()

    # Business Info
    pdf.set_font('Arial', 'B', 16)
    pdf.cell(0, 10, _text(receipt["businessName"]), 0, 1, 'L')
    pdf.set_font('Arial', '', 11)
    if receipt["businessAddress"]:
        pdf.cell(0, 7, _text(receipt["businessAddress"]), 0, 1, 'L')
    if receipt["businessPhone"]:
        pdf.cell(0, 7, _text(receipt["businessPhone"]), 0, 1, 'L')
    pdf.ln(5)

    # Order Info
    pdf.cell(0, 7, _text(f'Order #: {receipt["orderNumber"]}'), 0, 1, 'L')
    pdf.cell(0, 7, _text(f'Order Date: {receipt["orderDate"]:%Y-%m-%d}'), 0, 1, 'L')
    if receipt["dueDate"]:
        pdf.cell(0, 7, _text(f'Due Date: {receipt["dueDate"]:%Y-%m-%d}'), 0, 1, 'L')
    pdf.ln(3)

    # Customer Info
    pdf.set_font('Arial', 'B', 12)
    pdf.cell(0, 8, 'Customer:', 0, 1, 'L')
    pdf.set_font('Arial', '', 11)
    pdf.cell(0, 7, _text(receipt["customerName"]), 0, 1, 'L')
    pdf.cell(0, 7, _text(receipt["customerPhone"]), 0, 1, 'L')
    pdf.ln(5)

    # Items Table Header
    pdf.set_font('Arial', 'B', 11)
    pdf.cell(100, 8, 'Item', 1, 0, 'C')
    pdf.cell(30, 8, 'Quantity', 1, 0, 'C')
    pdf.cell(30, 8, 'Unit Price', 1, 0, 'C')
    pdf.cell(30, 8, 'Total', 1, 1, 'C')

    # Items Table Rows
    pdf.set_font('Arial', '', 11)
    for item in receipt["items"]:
        name = item["name"]
        if item["color"] or item["size"]:
            name = f'{name} ({", ".join(v for v in (item["color"], item["size"]) if v)})'
        pdf.cell(100, 8, _text(name), 1, 0, 'L')
        pdf.cell(30, 8, str(item["quantity"]), 1, 0, 'R')
        pdf.cell(30, 8, f'{item["unitPrice"]:.2f}', 1, 0, 'R')
        pdf.cell(30, 8, f'{item["totalPrice"]:.2f}', 1, 1, 'R')
    pdf.ln(5)

    # Totals
    pdf.set_font('Arial', 'B', 11)
    for label, value in (
        ('Total:', receipt["totalAmount"]),
        ('Amount Paid:', receipt["paidAmount"]),
        ('Balance Due:', receipt["remainingAmount"]),
    ):
        pdf.cell(130, 8, '', 0, 0)
        pdf.cell(30, 8, label, 1, 0, 'R')
        pdf.cell(30, 8, _text(format_currency(value)), 1, 1, 'R')

    pdf.ln(5)
    pdf.set_font('Arial', 'I', 10)
    pdf.multi_cell(0, 6, _text(f'Amount in words: {receipt["totalInWords"]}'))

    logger.debug(f"Rendered receipt PDF for order {receipt['orderNumber']}")
    return bytes(pdf.output())
