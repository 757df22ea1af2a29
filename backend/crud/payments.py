import uuid
from datetime import date
from decimal import Decimal
from typing import Any, Dict, List, Optional

from sqlalchemy import func
from sqlalchemy.orm import Session

from models.customers import Customer
from models.orders import Order, PaymentStatus
from models.payments import Payment, PaymentMethod, PaymentRecordStatus
from schemas.payments import PaymentCreate
from utils.formatting import ensure_utc

VALID_PAYMENT_METHODS = [m.value for m in PaymentMethod]


def calculate_payment_status(total_amount, paid_amount) -> PaymentStatus:
    total = Decimal(total_amount or 0)
    paid = Decimal(paid_amount or 0)
    if paid > 0 and paid >= total:
        return PaymentStatus.PAID
    if paid > 0:
        return PaymentStatus.PARTIAL
    return PaymentStatus.UNPAID


def outstanding_balance(order: Order) -> Decimal:
    return Decimal(order.total_amount or 0) - Decimal(order.paid_amount or 0)


def validate_payment(db: Session, payment: PaymentCreate) -> Dict[str, Any]:
    """Check a prospective payment against its order; returns {valid, error}."""
    order = db.query(Order).filter(Order.order_id == payment.order_id).first()
    if order is None:
        return {"valid": False, "error": "Order not found"}

    if payment.amount is None or payment.amount <= 0:
        return {"valid": False, "error": "Payment amount must be greater than 0"}

    outstanding = outstanding_balance(order)
    if payment.amount > outstanding:
        return {"valid": False, "error": f"Payment amount exceeds outstanding balance of ${outstanding:.2f}"}

    if payment.payment_method not in VALID_PAYMENT_METHODS:
        return {"valid": False, "error": "Invalid or inactive payment method"}

    return {"valid": True, "error": None}


def apply_to_order(order: Order, delta: Decimal) -> None:
    """Move ``delta`` into (or, when negative, out of) the order's paid amount."""
    order.paid_amount = Decimal(order.paid_amount or 0) + Decimal(delta)
    order.payment_status = calculate_payment_status(order.total_amount, order.paid_amount)


def new_transaction_id() -> str:
    return f"TXN-{uuid.uuid4().hex[:16].upper()}"


def receipt_number_for(payment: Payment) -> str:
    when = ensure_utc(payment.payment_date)
    return f"RCP-{when:%Y%m%d}-{payment.payment_id:05d}"


def payment_to_dict(payment: Payment, order: Optional[Order] = None, customer: Optional[Customer] = None) -> Dict[str, Any]:
    result = {
        "payment_id": payment.payment_id,
        "order_id": payment.order_id,
        "payment_date": ensure_utc(payment.payment_date),
        "amount": payment.amount,
        "payment_method": payment.payment_method.value if payment.payment_method else None,
        "reference_number": payment.reference_number,
        "transaction_id": payment.transaction_id,
        "status": payment.status.value if payment.status else None,
        "notes": payment.notes,
        "processed_by": payment.processed_by,
        "receipt_number": payment.receipt_number,
        "refund_amount": payment.refund_amount,
        "refund_reason": payment.refund_reason,
        "created_at": ensure_utc(payment.created_at),
    }
    if order is not None:
        result["order_number"] = order.order_number
    if customer is not None:
        result["customer_name"] = customer.customer_name
        result["phone_number"] = customer.phone_number
    return result


def get_payments(
    db: Session,
    search: Optional[str] = None,
    payment_method: Optional[str] = None,
    status: Optional[str] = None,
    date_from: Optional[date] = None,
    date_to: Optional[date] = None,
    order_id: Optional[int] = None,
    page: int = 1,
    limit: int = 20,
) -> Dict[str, Any]:
    query = (
        db.query(Payment, Order, Customer)
        .join(Order, Payment.order_id == Order.order_id)
        .join(Customer, Order.customer_id == Customer.customer_id)
    )
    if order_id is not None:
        query = query.filter(Payment.order_id == order_id)
    if payment_method:
        query = query.filter(Payment.payment_method == PaymentMethod(payment_method))
    if status:
        query = query.filter(Payment.status == PaymentRecordStatus(status))
    if date_from:
        query = query.filter(func.date(Payment.payment_date) >= date_from)
    if date_to:
        query = query.filter(func.date(Payment.payment_date) <= date_to)
    if search:
        term = f"%{search}%"
        query = query.filter(
            Customer.customer_name.like(term)
            | Customer.phone_number.like(term)
            | Order.order_number.like(term)
            | Payment.transaction_id.like(term)
        )

    total = query.count()
    rows = (
        query.order_by(Payment.payment_date.desc(), Payment.payment_id.desc())
        .offset((page - 1) * limit)
        .limit(limit)
        .all()
    )
    return {
        "payments": [payment_to_dict(p, o, c) for p, o, c in rows],
        "pagination": {
            "page": page,
            "limit": limit,
            "total": total,
            "totalPages": (total + limit - 1) // limit,
        },
    }


def get_payment_stats(db: Session, date_from: Optional[date] = None, date_to: Optional[date] = None) -> Dict[str, Any]:
    query = db.query(Payment).filter(Payment.status == PaymentRecordStatus.COMPLETED)
    if date_from:
        query = query.filter(func.date(Payment.payment_date) >= date_from)
    if date_to:
        query = query.filter(func.date(Payment.payment_date) <= date_to)

    by_method: Dict[str, Dict[str, Any]] = {}
    total_received = Decimal("0")
    total_refunded = Decimal("0")
    count = 0
    for payment in query.all():
        amount = Decimal(payment.amount or 0)
        method = payment.payment_method.value
        bucket = by_method.setdefault(method, {"payment_method": method, "total_amount": Decimal("0"), "transaction_count": 0})
        bucket["total_amount"] += amount
        bucket["transaction_count"] += 1
        total_received += amount
        total_refunded += Decimal(payment.refund_amount or 0)
        count += 1

    outstanding = (
        db.query(func.coalesce(func.sum(Order.total_amount - Order.paid_amount), 0))
        .filter(Order.payment_status.in_([PaymentStatus.UNPAID, PaymentStatus.PARTIAL]))
        .scalar()
    )
    return {
        "total_received": total_received,
        "total_refunded": total_refunded,
        "transaction_count": count,
        "average_payment": (total_received / count).quantize(Decimal("0.01")) if count else Decimal("0"),
        "outstanding_amount": Decimal(outstanding or 0),
        "by_method": list(by_method.values()),
    }


def get_outstanding_payments(db: Session, customer_id: Optional[int] = None, today: Optional[date] = None) -> List[Dict[str, Any]]:
    today = today or date.today()
    query = (
        db.query(Order, Customer)
        .join(Customer, Order.customer_id == Customer.customer_id)
        .filter(Order.payment_status.in_([PaymentStatus.UNPAID, PaymentStatus.PARTIAL]))
    )
    if customer_id is not None:
        query = query.filter(Order.customer_id == customer_id)

    results = []
    # NULL due dates sort last
    for order, customer in query.order_by(Order.due_date.is_(None), Order.due_date.asc(), Order.order_id.asc()).all():
        results.append({
            "order_id": order.order_id,
            "order_number": order.order_number,
            "total_amount": order.total_amount,
            "paid_amount": order.paid_amount,
            "outstanding_amount": outstanding_balance(order),
            "due_date": order.due_date,
            "payment_status": order.payment_status.value,
            "customer_id": customer.customer_id,
            "customer_name": customer.customer_name,
            "phone_number": customer.phone_number,
            "days_overdue": (today - order.due_date).days if order.due_date else None,
        })
    return results
