from fastapi import APIRouter, Depends, HTTPException, Request, Query, status
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session
from typing import Optional
from datetime import date
from decimal import Decimal
import logging

from crud import payments as crud_payments
from database import get_db
from models.orders import Order as OrderModel
from models.payments import Payment as PaymentModel, PaymentMethod, PaymentRecordStatus
from schemas.payments import Payment, PaymentCreate, PaymentValidation, RefundRequest
from utils import sqlalchemy_to_dict
from utils.audit import get_audit_user, record_audit, add_audit_fields_for_insert, add_audit_fields_for_update, add_audit_fields_for_delete
from utils.auth_utils import get_current_user, require_role
from utils.formatting import utcnow

router = APIRouter(prefix="/api/payments", tags=["Payments"], dependencies=[Depends(get_current_user)])
logger = logging.getLogger("payments")


@router.get("/")
def read_payments(
    search: Optional[str] = None,
    payment_method: Optional[PaymentMethod] = None,
    status: Optional[PaymentRecordStatus] = None,
    date_from: Optional[date] = None,
    date_to: Optional[date] = None,
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=500),
    db: Session = Depends(get_db),
):
    return crud_payments.get_payments(
        db,
        search=search,
        payment_method=payment_method.value if payment_method else None,
        status=status.value if status else None,
        date_from=date_from,
        date_to=date_to,
        page=page,
        limit=limit,
    )


@router.get("/stats")
def payment_stats(date_from: Optional[date] = None, date_to: Optional[date] = None, db: Session = Depends(get_db)):
    return crud_payments.get_payment_stats(db, date_from, date_to)


@router.get("/outstanding")
def outstanding_payments(customer_id: Optional[int] = None, db: Session = Depends(get_db)):
    orders = crud_payments.get_outstanding_payments(db, customer_id=customer_id)
    return {
        "orders": orders,
        "total_outstanding": sum((o["outstanding_amount"] for o in orders), Decimal("0")),
    }


@router.get("/order/{order_id}")
def payments_for_order(order_id: int, db: Session = Depends(get_db)):
    db_order = db.query(OrderModel).filter(OrderModel.order_id == order_id).first()
    if db_order is None:
        raise HTTPException(status_code=404, detail="Order not found")
    payments = (
        db.query(PaymentModel)
        .filter(PaymentModel.order_id == order_id)
        .order_by(PaymentModel.payment_date.desc(), PaymentModel.payment_id.desc())
        .all()
    )
    return {
        "order_id": order_id,
        "order_number": db_order.order_number,
        "total_amount": db_order.total_amount,
        "paid_amount": db_order.paid_amount,
        "outstanding_amount": crud_payments.outstanding_balance(db_order),
        "payment_status": db_order.payment_status.value,
        "payments": [Payment.model_validate(p) for p in payments],
    }


@router.post("/validate", response_model=PaymentValidation)
def validate_payment(payment: PaymentCreate, db: Session = Depends(get_db)):
    return crud_payments.validate_payment(db, payment)


@router.post("/", status_code=status.HTTP_201_CREATED)
def record_payment(
    payment: PaymentCreate,
    request: Request,
    db: Session = Depends(get_db),
    audit_user: str = Depends(get_audit_user),
):
    validation = crud_payments.validate_payment(db, payment)
    if not validation["valid"]:
        code = 404 if validation["error"] == "Order not found" else 400
        raise HTTPException(status_code=code, detail=validation["error"])

    db_order = db.query(OrderModel).filter(OrderModel.order_id == payment.order_id).first()
    old_order = {"paid_amount": str(db_order.paid_amount), "payment_status": db_order.payment_status.value}

    data = payment.model_dump(exclude={"payment_date", "transaction_id"})
    data["payment_method"] = PaymentMethod(payment.payment_method)
    db_payment = PaymentModel(
        **add_audit_fields_for_insert(data, audit_user),
        payment_date=payment.payment_date or utcnow(),
        transaction_id=payment.transaction_id or crud_payments.new_transaction_id(),
        status=PaymentRecordStatus.COMPLETED,
        processed_by=audit_user,
    )
    try:
        db.add(db_payment)
        db.flush()
        db_payment.receipt_number = crud_payments.receipt_number_for(db_payment)
        crud_payments.apply_to_order(db_order, payment.amount)
        db_order.updated_by = audit_user
        db.flush()
        record_audit(
            db, request, "payments", db_payment.payment_id, "CREATE",
            f"Payment Recorded: {payment.amount} via {payment.payment_method} for {db_order.order_number}",
            old_values=old_order,
            new_values=sqlalchemy_to_dict(db_payment),
        )
        db.commit()
    except IntegrityError:
        db.rollback()
        raise HTTPException(status_code=409, detail="A payment with this transaction id already exists")

    db.refresh(db_payment)
    db.refresh(db_order)
    logger.info(f"Payment {db_payment.payment_id} of {db_payment.amount} for order {db_order.order_number} recorded by user {audit_user}")
    return {
        "message": "Payment recorded successfully",
        "payment": Payment.model_validate(db_payment),
        "order_payment_status": db_order.payment_status.value,
        "outstanding_amount": crud_payments.outstanding_balance(db_order),
    }


@router.get("/{payment_id}", response_model=Payment)
def read_payment(payment_id: int, db: Session = Depends(get_db)):
    db_payment = db.query(PaymentModel).filter(PaymentModel.payment_id == payment_id).first()
    if db_payment is None:
        raise HTTPException(status_code=404, detail="Payment not found")
    return db_payment


@router.post("/{payment_id}/refund", dependencies=[Depends(require_role(["admin", "manager"]))])
def refund_payment(
    payment_id: int,
    refund: RefundRequest,
    request: Request,
    db: Session = Depends(get_db),
    audit_user: str = Depends(get_audit_user),
):
    db_payment = db.query(PaymentModel).filter(PaymentModel.payment_id == payment_id).first()
    if db_payment is None:
        raise HTTPException(status_code=404, detail="Payment not found")
    if db_payment.status != PaymentRecordStatus.COMPLETED:
        raise HTTPException(status_code=400, detail=f"Only completed payments can be refunded (status is {db_payment.status.value})")

    refundable = Decimal(db_payment.amount) - Decimal(db_payment.refund_amount or 0)
    if refund.refund_amount > refundable:
        raise HTTPException(status_code=400, detail=f"Refund amount exceeds refundable balance of ${refundable:.2f}")

    db_order = db.query(OrderModel).filter(OrderModel.order_id == db_payment.order_id).first()
    old_values = sqlalchemy_to_dict(db_payment)

    db_payment.refund_amount = Decimal(db_payment.refund_amount or 0) + refund.refund_amount
    db_payment.refund_reason = refund.refund_reason
    if db_payment.refund_amount >= Decimal(db_payment.amount):
        db_payment.status = PaymentRecordStatus.REFUNDED
    for key, value in add_audit_fields_for_update({}, audit_user).items():
        setattr(db_payment, key, value)
    if db_order is not None:
        crud_payments.apply_to_order(db_order, -refund.refund_amount)

    db.flush()
    record_audit(
        db, request, "payments", payment_id, "UPDATE",
        f"Payment Refunded: {refund.refund_amount} ({refund.refund_reason})",
        old_values=old_values,
        new_values=sqlalchemy_to_dict(db_payment),
    )
    db.commit()
    logger.info(f"Payment {payment_id} refunded {refund.refund_amount} by user {audit_user}")
    return {"message": "Refund processed successfully", "payment": Payment.model_validate(db_payment)}


@router.delete("/{payment_id}", dependencies=[Depends(require_role(["admin"]))])
def delete_payment(
    payment_id: int,
    request: Request,
    db: Session = Depends(get_db),
    audit_user: str = Depends(get_audit_user),
):
    db_payment = db.query(PaymentModel).filter(PaymentModel.payment_id == payment_id).first()
    if db_payment is None:
        raise HTTPException(status_code=404, detail="Payment not found")

    old_values = sqlalchemy_to_dict(db_payment)
    db_order = db.query(OrderModel).filter(OrderModel.order_id == db_payment.order_id).first()
    if db_order is not None and db_payment.status == PaymentRecordStatus.COMPLETED:
        # Only the part that was not already refunded is still on the order
        crud_payments.apply_to_order(db_order, -(Decimal(db_payment.amount) - Decimal(db_payment.refund_amount or 0)))

    for key, value in add_audit_fields_for_delete(audit_user).items():
        setattr(db_payment, key, value)

    record_audit(
        db, request, "payments", payment_id, "DELETE",
        f"Payment Deleted: {db_payment.amount} for order {db_payment.order_id}",
        old_values=old_values,
    )
    db.commit()
    logger.info(f"Payment {payment_id} deleted by user {audit_user}")
    return {"message": "Payment deleted successfully"}
