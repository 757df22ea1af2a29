from fastapi import APIRouter, Depends, HTTPException, Request, status
from sqlalchemy import func
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session
from typing import List, Optional
from datetime import date
from decimal import Decimal
import logging

from crud import orders as crud_orders
from crud.payments import calculate_payment_status
from database import get_db
from models.customers import Customer as CustomerModel
from models.orders import Order as OrderModel, OrderItem as OrderItemModel, OrderStatus, PaymentStatus
from schemas.orders import Order, OrderCreate, OrderItem, OrderStatusUpdate, OrderSummary, OrderUpdate
from schemas.payments import Payment
from utils import sqlalchemy_to_dict
from utils.audit import get_audit_user, record_audit, add_audit_fields_for_insert, add_audit_fields_for_update, add_audit_fields_for_delete
from utils.auth_utils import get_current_user

router = APIRouter(prefix="/api/orders", tags=["Orders"], dependencies=[Depends(get_current_user)])
logger = logging.getLogger("orders")


def _order_snapshot(db_order: OrderModel, items: List[OrderItemModel]) -> dict:
    snapshot = sqlalchemy_to_dict(db_order)
    snapshot["items"] = [sqlalchemy_to_dict(i) for i in items]
    return snapshot


@router.get("/", response_model=List[OrderSummary])
def read_orders(
    skip: int = 0,
    limit: int = 100,
    status: Optional[OrderStatus] = None,
    payment_status: Optional[PaymentStatus] = None,
    customer_id: Optional[int] = None,
    db: Session = Depends(get_db),
):
    query = db.query(OrderModel, CustomerModel).join(CustomerModel, OrderModel.customer_id == CustomerModel.customer_id)
    if status:
        query = query.filter(OrderModel.status == status)
    if payment_status:
        query = query.filter(OrderModel.payment_status == payment_status)
    if customer_id is not None:
        query = query.filter(OrderModel.customer_id == customer_id)
    rows = query.order_by(OrderModel.order_date.desc(), OrderModel.order_id.desc()).offset(skip).limit(limit).all()

    # One query for the items of the whole page
    order_ids = [o.order_id for o, _ in rows]
    items_by_order = {}
    if order_ids:
        for item in db.query(OrderItemModel).filter(OrderItemModel.order_id.in_(order_ids)).order_by(OrderItemModel.item_id):
            items_by_order.setdefault(item.order_id, []).append(item)

    result = []
    for db_order, customer in rows:
        items = items_by_order.get(db_order.order_id, [])
        result.append(OrderSummary(
            **Order.model_validate(db_order).model_dump(),
            customer_name=customer.customer_name,
            phone_number=customer.phone_number,
            item_count=len(items),
            items_summary=crud_orders.items_summary(items),
        ))
    return result


@router.get("/stats/dashboard")
def order_dashboard_stats(db: Session = Depends(get_db)):
    def count_with_status(order_status):
        return db.query(func.count(OrderModel.order_id)).filter(OrderModel.status == order_status).scalar()

    total_revenue = (
        db.query(func.coalesce(func.sum(OrderModel.total_amount), 0))
        .filter(OrderModel.payment_status == PaymentStatus.PAID)
        .scalar()
    )
    unpaid_amount = (
        db.query(func.coalesce(func.sum(OrderModel.total_amount - OrderModel.paid_amount), 0))
        .filter(OrderModel.payment_status != PaymentStatus.PAID)
        .scalar()
    )
    return {
        "totalOrders": db.query(func.count(OrderModel.order_id)).scalar(),
        "totalRevenue": Decimal(total_revenue or 0),
        "pendingOrders": count_with_status(OrderStatus.PENDING),
        "washingOrders": count_with_status(OrderStatus.WASHING),
        "readyOrders": count_with_status(OrderStatus.READY),
        "unpaidAmount": Decimal(unpaid_amount or 0),
    }


@router.get("/{order_id}")
def read_order(order_id: int, db: Session = Depends(get_db)):
    row = (
        db.query(OrderModel, CustomerModel)
        .join(CustomerModel, OrderModel.customer_id == CustomerModel.customer_id)
        .filter(OrderModel.order_id == order_id)
        .first()
    )
    if row is None:
        raise HTTPException(status_code=404, detail="Order not found")
    db_order, customer = row
    order = Order.model_validate(db_order).model_dump()
    order.update(customer_name=customer.customer_name, phone_number=customer.phone_number, email=customer.email, address=customer.address)
    return {
        "order": order,
        "items": [OrderItem.model_validate(i) for i in crud_orders.get_order_items(db, order_id)],
        "payments": [Payment.model_validate(p) for p in crud_orders.get_order_payments(db, order_id)],
    }


@router.post("/", status_code=status.HTTP_201_CREATED)
def create_order(
    order: OrderCreate,
    request: Request,
    db: Session = Depends(get_db),
    audit_user: str = Depends(get_audit_user),
):
    customer = db.query(CustomerModel).filter(CustomerModel.customer_id == order.customer_id).first()
    if customer is None:
        raise HTTPException(status_code=404, detail="Customer not found")

    seq = crud_orders.next_order_seq(db)
    header = order.model_dump(exclude={"items"})
    header["order_date"] = order.order_date or date.today()
    db_order = OrderModel(
        **add_audit_fields_for_insert(header, audit_user),
        order_seq=seq,
        order_number=crud_orders.format_order_number(seq),
        status=OrderStatus.PENDING,
        payment_status=PaymentStatus.UNPAID,
        total_amount=crud_orders.order_total(order.items),
        paid_amount=Decimal("0"),
    )
    try:
        db.add(db_order)
        db.flush()
        items = crud_orders.add_items(db, db_order, order.items, add_audit_fields_for_insert({}, audit_user))
        record_audit(
            db, request, "orders", db_order.order_id, "CREATE",
            f"Order Created: {db_order.order_number} for {customer.customer_name}",
            new_values=_order_snapshot(db_order, items),
        )
        db.commit()
    except IntegrityError:
        # Another order took this sequence number first
        db.rollback()
        logger.warning(f"Order number collision on sequence {seq} (user {audit_user})")
        raise HTTPException(status_code=409, detail="Order number already in use, please retry")
    except Exception:
        db.rollback()
        raise

    db.refresh(db_order)
    logger.info(f"Order {db_order.order_number} (ID: {db_order.order_id}) created by user {audit_user} with {len(items)} items, total {db_order.total_amount}")
    return {
        "message": "Order created successfully",
        "order_id": db_order.order_id,
        "order_number": db_order.order_number,
        "total_amount": db_order.total_amount,
    }


@router.put("/{order_id}")
def update_order(
    order_id: int,
    order: OrderUpdate,
    request: Request,
    db: Session = Depends(get_db),
    audit_user: str = Depends(get_audit_user),
):
    db_order = db.query(OrderModel).filter(OrderModel.order_id == order_id).first()
    if db_order is None:
        raise HTTPException(status_code=404, detail="Order not found")

    changes = order.model_dump(exclude_unset=True, exclude={"items"})
    if not changes and order.items is None:
        raise HTTPException(status_code=400, detail="No valid fields to update")
    if "customer_id" in changes:
        if db.query(CustomerModel).filter(CustomerModel.customer_id == changes["customer_id"]).first() is None:
            raise HTTPException(status_code=404, detail="Customer not found")

    old_items = crud_orders.get_order_items(db, order_id)
    old_values = _order_snapshot(db_order, old_items)

    for key, value in add_audit_fields_for_update(changes, audit_user).items():
        setattr(db_order, key, value)

    items = old_items
    if order.items is not None:
        new_total = crud_orders.order_total(order.items)
        if new_total < Decimal(db_order.paid_amount or 0):
            raise HTTPException(
                status_code=400,
                detail=f"Order total ({new_total:.2f}) cannot be less than the amount already paid ({db_order.paid_amount:.2f})",
            )
        crud_orders.soft_delete_items(db, order_id, add_audit_fields_for_delete(audit_user))
        items = crud_orders.add_items(db, db_order, order.items, add_audit_fields_for_insert({}, audit_user))
        db_order.total_amount = new_total
        db_order.payment_status = calculate_payment_status(new_total, db_order.paid_amount)

    db.flush()
    record_audit(
        db, request, "orders", order_id, "UPDATE",
        f"Order Updated: {db_order.order_number}",
        old_values=old_values,
        new_values=_order_snapshot(db_order, items),
    )
    db.commit()
    db.refresh(db_order)
    logger.info(f"Order {db_order.order_number} (ID: {order_id}) updated by user {audit_user}")
    return {"message": "Order updated successfully", "order": Order.model_validate(db_order)}


@router.patch("/{order_id}/status")
def update_order_status(
    order_id: int,
    body: OrderStatusUpdate,
    request: Request,
    db: Session = Depends(get_db),
    audit_user: str = Depends(get_audit_user),
):
    db_order = db.query(OrderModel).filter(OrderModel.order_id == order_id).first()
    if db_order is None:
        raise HTTPException(status_code=404, detail="Order not found")

    old_status = db_order.status.value
    db_order.status = body.status
    if body.status == OrderStatus.DELIVERED and db_order.delivery_date is None:
        db_order.delivery_date = date.today()
    for key, value in add_audit_fields_for_update({}, audit_user).items():
        setattr(db_order, key, value)

    record_audit(
        db, request, "orders", order_id, "UPDATE",
        f"Order Status Changed: {db_order.order_number} {old_status} -> {body.status.value}",
        old_values={"status": old_status},
        new_values={"status": body.status.value},
    )
    db.commit()
    logger.info(f"Order {db_order.order_number} status changed from {old_status} to {body.status.value} by user {audit_user}")
    return {"message": "Order status updated successfully", "order_id": order_id, "status": body.status.value}


@router.delete("/{order_id}")
def delete_order(
    order_id: int,
    request: Request,
    db: Session = Depends(get_db),
    audit_user: str = Depends(get_audit_user),
):
    db_order = db.query(OrderModel).filter(OrderModel.order_id == order_id).first()
    if db_order is None:
        raise HTTPException(status_code=404, detail="Order not found")

    old_values = _order_snapshot(db_order, crud_orders.get_order_items(db, order_id))
    delete_fields = add_audit_fields_for_delete(audit_user)
    for key, value in delete_fields.items():
        setattr(db_order, key, value)
    item_count = crud_orders.soft_delete_items(db, order_id, delete_fields)

    record_audit(
        db, request, "orders", order_id, "DELETE",
        f"Order Deleted: {db_order.order_number}",
        old_values=old_values,
    )
    db.commit()
    logger.info(f"Order {db_order.order_number} (ID: {order_id}) and {item_count} items deleted by user {audit_user}")
    return {"message": "Order deleted successfully"}
