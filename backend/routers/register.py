from fastapi import APIRouter, Depends, HTTPException, Request, Query, status
from sqlalchemy import func, case
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session
from typing import Optional
from decimal import Decimal
import logging
import uuid

from database import get_db
from models.register import RegisterEntry as RegisterModel, DeliveryStatus
from schemas.register import DeliveryStatusUpdate, RegisterCreate, RegisterRecord, RegisterUpdate
from schemas.validators import escape_like, strip_phone_separators
from utils import sqlalchemy_to_dict
from utils.audit import get_audit_user, record_audit, add_audit_fields_for_insert, add_audit_fields_for_update, add_audit_fields_for_delete
from utils.auth_utils import get_current_user
from utils.formatting import utcnow

router = APIRouter(prefix="/api/register", tags=["Register"], dependencies=[Depends(get_current_user)])
logger = logging.getLogger("register")


def _record(entry: RegisterModel) -> RegisterRecord:
    record = RegisterRecord.model_validate(entry)
    record.balance = Decimal(entry.total_amount or 0) - Decimal(entry.paid_amount or 0)
    return record


def _new_receipt_number() -> str:
    return f"REG-{utcnow():%Y%m%d%H%M%S}-{uuid.uuid4().hex[:5].upper()}"


def _phone_taken(db: Session, phone: str, exclude_id: Optional[int] = None) -> Optional[RegisterModel]:
    query = db.query(RegisterModel).filter(RegisterModel.active_phone == phone)
    if exclude_id is not None:
        query = query.filter(RegisterModel.id != exclude_id)
    return query.first()


@router.get("/search/{phone}")
def search_by_phone(phone: str, db: Session = Depends(get_db)):
    cleaned = strip_phone_separators(phone)
    if len(cleaned) < 3:
        raise HTTPException(status_code=400, detail="Phone number must be at least 3 characters long")

    # Compare with separators stripped on both sides
    stored = func.replace(func.replace(func.replace(func.replace(RegisterModel.phone, " ", ""), "-", ""), "(", ""), ")", "")
    entries = (
        db.query(RegisterModel)
        .filter(stored.like(f"%{escape_like(cleaned)}%", escape="\\"))
        .order_by(RegisterModel.created_at.desc(), RegisterModel.id.desc())
        .all()
    )
    if not entries:
        raise HTTPException(status_code=404, detail="No records found for this phone number")
    return {
        "records": [_record(e) for e in entries],
        "total_found": len(entries),
        "phone_searched": phone,
    }


@router.get("/")
def read_register(
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=500),
    status: Optional[DeliveryStatus] = None,
    db: Session = Depends(get_db),
):
    query = db.query(RegisterModel)
    if status:
        query = query.filter(RegisterModel.delivery_status == status)
    total = query.count()
    entries = (
        query.order_by(RegisterModel.created_at.desc(), RegisterModel.id.desc())
        .offset((page - 1) * limit)
        .limit(limit)
        .all()
    )
    total_pages = (total + limit - 1) // limit
    return {
        "records": [_record(e) for e in entries],
        "pagination": {
            "current_page": page,
            "per_page": limit,
            "total": total,
            "total_pages": total_pages,
            "has_next": page < total_pages,
            "has_prev": page > 1,
        },
        "filters": {"status": status.value if status else "all"},
    }


@router.get("/stats/summary")
def register_stats(db: Session = Depends(get_db)):
    def status_count(value):
        return func.coalesce(func.sum(case((RegisterModel.delivery_status == value, 1), else_=0)), 0)

    row = db.query(
        func.count(RegisterModel.id),
        status_count(DeliveryStatus.PENDING),
        status_count(DeliveryStatus.READY),
        status_count(DeliveryStatus.DELIVERED),
        status_count(DeliveryStatus.CANCELLED),
        func.coalesce(func.sum(RegisterModel.total_amount), 0),
        func.coalesce(func.sum(RegisterModel.paid_amount), 0),
    ).one()
    total_records, pending, ready, delivered, cancelled, revenue, paid = row
    return {
        "total_records": total_records,
        "pending_deliveries": pending,
        "ready_for_pickup": ready,
        "delivered": delivered,
        "cancelled": cancelled,
        "total_revenue": Decimal(revenue),
        "total_paid": Decimal(paid),
        "total_outstanding": Decimal(revenue) - Decimal(paid),
    }


@router.get("/{entry_id}", response_model=RegisterRecord)
def read_register_entry(entry_id: int, db: Session = Depends(get_db)):
    entry = db.query(RegisterModel).filter(RegisterModel.id == entry_id).first()
    if entry is None:
        raise HTTPException(status_code=404, detail="Register record not found")
    return _record(entry)


@router.put("/{entry_id}/status")
def update_delivery_status(
    entry_id: int,
    body: DeliveryStatusUpdate,
    request: Request,
    db: Session = Depends(get_db),
    audit_user: str = Depends(get_audit_user),
):
    entry = db.query(RegisterModel).filter(RegisterModel.id == entry_id).first()
    if entry is None:
        raise HTTPException(status_code=404, detail="Register record not found")

    old_values = sqlalchemy_to_dict(entry)
    changes = {
        "delivery_status": body.delivery_status,
        "notes": body.notes,
        "pickup_date": utcnow() if body.delivery_status == DeliveryStatus.DELIVERED else None,
    }
    for key, value in add_audit_fields_for_update(changes, audit_user).items():
        setattr(entry, key, value)

    db.flush()
    record_audit(
        db, request, "register", entry_id, "UPDATE",
        f"Register Delivery Status Updated: {entry.name} -> {body.delivery_status.value}",
        old_values=old_values,
        new_values=sqlalchemy_to_dict(entry),
    )
    db.commit()
    db.refresh(entry)
    logger.info(f"Register entry {entry_id} delivery status set to {body.delivery_status.value} by user {audit_user}")
    return {"message": f"Delivery status updated to {body.delivery_status.value}", "record": _record(entry)}


@router.post("/", status_code=status.HTTP_201_CREATED)
def create_register_entry(
    body: RegisterCreate,
    request: Request,
    db: Session = Depends(get_db),
    audit_user: str = Depends(get_audit_user),
):
    existing = _phone_taken(db, body.phone)
    if existing is not None:
        raise HTTPException(status_code=409, detail="A record with this phone number already exists")

    data = body.model_dump()
    data["drop_off_date"] = body.drop_off_date or utcnow()
    entry = RegisterModel(
        **add_audit_fields_for_insert(data, audit_user),
        active_phone=body.phone,
        delivery_status=DeliveryStatus.PENDING,
        receipt_number=_new_receipt_number(),
        status="active",
    )
    try:
        db.add(entry)
        db.flush()
        record_audit(
            db, request, "register", entry.id, "CREATE",
            f"Register Entry Created: {entry.name}",
            new_values=sqlalchemy_to_dict(entry),
        )
        db.commit()
    except IntegrityError:
        db.rollback()
        raise HTTPException(status_code=409, detail="A record with this phone number already exists")

    db.refresh(entry)
    logger.info(f"Register entry {entry.id} ({entry.receipt_number}) created by user {audit_user}")
    return {"message": "Register entry created successfully", "record": _record(entry)}


@router.put("/{entry_id}")
def update_register_entry(
    entry_id: int,
    body: RegisterUpdate,
    request: Request,
    db: Session = Depends(get_db),
    audit_user: str = Depends(get_audit_user),
):
    entry = db.query(RegisterModel).filter(RegisterModel.id == entry_id).first()
    if entry is None:
        raise HTTPException(status_code=404, detail="Register record not found")

    changes = body.model_dump(exclude_unset=True)
    if not changes:
        raise HTTPException(status_code=400, detail="No valid fields to update")
    if "phone" in changes and _phone_taken(db, changes["phone"], exclude_id=entry_id):
        raise HTTPException(status_code=409, detail="A record with this phone number already exists")

    old_values = sqlalchemy_to_dict(entry)
    for key, value in add_audit_fields_for_update(changes, audit_user).items():
        setattr(entry, key, value)
    if "phone" in changes:
        entry.active_phone = changes["phone"]

    try:
        db.flush()
        record_audit(
            db, request, "register", entry_id, "UPDATE",
            f"Register Entry Updated: {entry.name}",
            old_values=old_values,
            new_values=sqlalchemy_to_dict(entry),
        )
        db.commit()
    except IntegrityError:
        db.rollback()
        raise HTTPException(status_code=409, detail="A record with this phone number already exists")

    db.refresh(entry)
    logger.info(f"Register entry {entry_id} updated by user {audit_user}")
    return {"message": "Register entry updated successfully", "record": _record(entry)}


@router.delete("/{entry_id}")
def delete_register_entry(
    entry_id: int,
    request: Request,
    db: Session = Depends(get_db),
    audit_user: str = Depends(get_audit_user),
):
    entry = db.query(RegisterModel).filter(RegisterModel.id == entry_id).first()
    if entry is None:
        raise HTTPException(status_code=404, detail="Register record not found")

    old_values = sqlalchemy_to_dict(entry)
    for key, value in add_audit_fields_for_delete(audit_user).items():
        setattr(entry, key, value)
    entry.active_phone = None

    record_audit(
        db, request, "register", entry_id, "DELETE",
        f"Register Entry Deleted: {entry.name}",
        old_values=old_values,
    )
    db.commit()
    logger.info(f"Register entry {entry_id} deleted by user {audit_user}")
    return {
        "message": "Register entry deleted successfully",
        "deleted_record": {"id": entry_id, "name": entry.name},
    }
