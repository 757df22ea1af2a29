from fastapi import APIRouter, Depends, HTTPException, Request, Query, status
from sqlalchemy import func, case, cast, String
from sqlalchemy.orm import Session
from typing import Optional
from decimal import Decimal
import logging

from database import get_db
from models.register_legacy import LegacyRegisterEntry as LegacyModel
from schemas.register_legacy import LegacyPaymentUpdate, LegacyRegisterCreate, LegacyRegisterPatch, LegacyRegisterRecord, PayCheck
from schemas.validators import escape_like, strip_phone_separators
from utils import sqlalchemy_to_dict, amount_to_words
from utils.audit import get_audit_user, record_audit, add_audit_fields_for_insert, add_audit_fields_for_update
from utils.auth_utils import get_current_user

router = APIRouter(prefix="/api/register-legacy", tags=["Register (legacy)"], dependencies=[Depends(get_current_user)])
logger = logging.getLogger("register_legacy")


def _record(entry: LegacyModel) -> dict:
    return LegacyRegisterRecord.model_validate(entry).model_dump(by_alias=True)


def _get_or_404(db: Session, item_num: int) -> LegacyModel:
    entry = db.query(LegacyModel).filter(LegacyModel.item_num == item_num).first()
    if entry is None:
        raise HTTPException(status_code=404, detail="Register record not found")
    return entry


@router.get("/search/{phone}")
def search_by_mobile(phone: str, db: Session = Depends(get_db)):
    cleaned = strip_phone_separators(phone)
    if len(cleaned) < 3:
        raise HTTPException(status_code=400, detail="Phone number must be at least 3 characters long")
    entries = (
        db.query(LegacyModel)
        .filter(cast(LegacyModel.mobnum, String).like(f"%{escape_like(cleaned)}%", escape="\\"))
        .order_by(LegacyModel.item_num.desc())
        .all()
    )
    if not entries:
        raise HTTPException(status_code=404, detail="No records found for this phone number")
    return {"records": [_record(e) for e in entries], "total_found": len(entries), "phone_searched": phone}


@router.get("/")
def read_legacy_register(
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=500),
    payment_status: Optional[PayCheck] = None,
    db: Session = Depends(get_db),
):
    query = db.query(LegacyModel)
    if payment_status:
        query = query.filter(LegacyModel.pay_check == payment_status)
    total = query.count()
    entries = query.order_by(LegacyModel.item_num.desc()).offset((page - 1) * limit).limit(limit).all()
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
        "filters": {"payment_status": payment_status or "all"},
    }


@router.get("/stats/summary")
def legacy_register_stats(db: Session = Depends(get_db)):
    def pay_count(value):
        return func.coalesce(func.sum(case((LegacyModel.pay_check == value, 1), else_=0)), 0)

    total_records, paid, pending, partial, total_amount = db.query(
        func.count(LegacyModel.item_num),
        pay_count("paid"),
        pay_count("pending"),
        pay_count("partial"),
        func.coalesce(func.sum(LegacyModel.total_amount), 0),
    ).one()
    total_amount = Decimal(total_amount)
    return {
        "total_records": total_records,
        "paid_records": paid,
        "pending_records": pending,
        "partial_records": partial,
        "total_amount": total_amount,
        "average_amount": (total_amount / total_records).quantize(Decimal("0.01")) if total_records else Decimal("0"),
    }


@router.get("/{item_num}")
def read_legacy_entry(item_num: int, db: Session = Depends(get_db)):
    return _record(_get_or_404(db, item_num))


@router.post("/", status_code=status.HTTP_201_CREATED)
def create_legacy_entry(
    body: LegacyRegisterCreate,
    request: Request,
    db: Session = Depends(get_db),
    audit_user: str = Depends(get_audit_user),
):
    data = body.model_dump()
    if not data.get("amntword"):
        data["amntword"] = amount_to_words(body.total_amount)
    entry = LegacyModel(**add_audit_fields_for_insert(data, audit_user))
    db.add(entry)
    db.flush()
    record_audit(
        db, request, "register_legacy", entry.item_num, "CREATE",
        f"Legacy Register Entry Created: {entry.name}",
        new_values=sqlalchemy_to_dict(entry),
    )
    db.commit()
    db.refresh(entry)
    logger.info(f"Legacy register entry {entry.item_num} created by user {audit_user}")
    return {"success": True, "message": "Register record created successfully", "record": _record(entry)}


@router.put("/{item_num}/payment")
def update_legacy_payment(
    item_num: int,
    body: LegacyPaymentUpdate,
    request: Request,
    db: Session = Depends(get_db),
    audit_user: str = Depends(get_audit_user),
):
    entry = _get_or_404(db, item_num)
    old_values = sqlalchemy_to_dict(entry)

    changes = {"pay_check": body.pay_check}
    if body.total_amount is not None:
        changes["total_amount"] = body.total_amount
        changes["amntword"] = amount_to_words(body.total_amount)
    for key, value in add_audit_fields_for_update(changes, audit_user).items():
        setattr(entry, key, value)

    db.flush()
    record_audit(
        db, request, "register_legacy", item_num, "UPDATE",
        f"Legacy Register Payment Updated: {entry.name} -> {body.pay_check}",
        old_values=old_values,
        new_values=sqlalchemy_to_dict(entry),
    )
    db.commit()
    db.refresh(entry)
    logger.info(f"Legacy register entry {item_num} payment set to {body.pay_check} by user {audit_user}")
    return {"success": True, "message": "Payment status updated successfully", "record": _record(entry)}


@router.patch("/{item_num}")
def patch_legacy_entry(
    item_num: int,
    body: LegacyRegisterPatch,
    request: Request,
    db: Session = Depends(get_db),
    audit_user: str = Depends(get_audit_user),
):
    entry = _get_or_404(db, item_num)
    changes = {k: v for k, v in body.model_dump(exclude_unset=True).items() if v is not None}
    if not changes:
        raise HTTPException(status_code=400, detail="No valid fields to update")
    if "total_amount" in changes and "amntword" not in changes:
        changes["amntword"] = amount_to_words(changes["total_amount"])

    old_values = sqlalchemy_to_dict(entry)
    for key, value in add_audit_fields_for_update(changes, audit_user).items():
        setattr(entry, key, value)

    db.flush()
    record_audit(
        db, request, "register_legacy", item_num, "UPDATE",
        f"Legacy Register Entry Updated: {entry.name}",
        old_values=old_values,
        new_values=sqlalchemy_to_dict(entry),
    )
    db.commit()
    db.refresh(entry)
    logger.info(f"Legacy register entry {item_num} updated by user {audit_user}: {sorted(changes)}")
    return {"success": True, "message": "Register record updated successfully", "record": _record(entry)}


@router.delete("/{item_num}")
def delete_legacy_entry(
    item_num: int,
    request: Request,
    db: Session = Depends(get_db),
    audit_user: str = Depends(get_audit_user),
):
    entry = _get_or_404(db, item_num)
    deleted = _record(entry)
    old_values = sqlalchemy_to_dict(entry)

    # This table has no soft-delete columns; the row is removed
    db.delete(entry)
    record_audit(
        db, request, "register_legacy", item_num, "DELETE",
        f"Legacy Register Entry Deleted: {old_values['name']}",
        old_values=old_values,
    )
    db.commit()
    logger.info(f"Legacy register entry {item_num} deleted by user {audit_user}")
    return {"success": True, "message": "Register record deleted successfully", "deleted_record": deleted}
