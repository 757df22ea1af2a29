from decimal import Decimal
from typing import Any, Dict, Iterable, List

from sqlalchemy import func
from sqlalchemy.orm import Session

from models.orders import Order, OrderItem
from models.payments import Payment
from schemas.orders import OrderItemCreate


def next_order_seq(db: Session) -> int:
    # Deleted orders keep their numbers, so they count towards the maximum
    current = (
        db.query(func.max(Order.order_seq))
        .execution_options(include_deleted=True)
        .scalar()
    )
    return (current or 0) + 1


def format_order_number(seq: int) -> str:
    return f"ORD-{seq:03d}"


def line_total(item: OrderItemCreate) -> Decimal:
    return Decimal(item.quantity) * Decimal(item.unit_price)


def order_total(items: Iterable[OrderItemCreate]) -> Decimal:
    return sum((line_total(item) for item in items), Decimal("0"))


def add_items(db: Session, order: Order, items: List[OrderItemCreate], audit_fields: Dict[str, Any]) -> List[OrderItem]:
    db_items = []
    for item in items:
        db_item = OrderItem(
            order_id=order.order_id,
            total_price=line_total(item),
            **item.model_dump(),
            **audit_fields,
        )
        db.add(db_item)
        db_items.append(db_item)
    db.flush()
    return db_items


def get_order_items(db: Session, order_id: int) -> List[OrderItem]:
    return (
        db.query(OrderItem)
        .filter(OrderItem.order_id == order_id)
        .order_by(OrderItem.item_id)
        .all()
    )


def get_order_payments(db: Session, order_id: int) -> List[Payment]:
    return (
        db.query(Payment)
        .filter(Payment.order_id == order_id)
        .order_by(Payment.payment_date.desc(), Payment.payment_id.desc())
        .all()
    )


def soft_delete_items(db: Session, order_id: int, delete_fields: Dict[str, Any]) -> int:
    items = get_order_items(db, order_id)
    for item in items:
        for key, value in delete_fields.items():
            setattr(item, key, value)
    return len(items)


def items_summary(items: Iterable[OrderItem]) -> str:
    return ", ".join(f"{item.item_name} x{item.quantity}" for item in items)
