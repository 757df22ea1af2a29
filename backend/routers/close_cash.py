from fastapi import APIRouter, Depends, HTTPException, Request, Query, status
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session
from typing import Optional
from datetime import date
import logging

from crud import close_cash as crud_close_cash
from database import get_db
from schemas.close_cash import CashClose, CashCloseCreate, CashCloseHistory, CashCloseUpdate, CashCloseValidation
from utils import sqlalchemy_to_dict
from utils.audit import get_audit_user, record_audit, add_audit_fields_for_insert, add_audit_fields_for_update
from utils.auth_utils import get_current_user, require_role

router = APIRouter(prefix="/api/close-cash", tags=["Close Cash"], dependencies=[Depends(get_current_user)])
logger = logging.getLogger("close_cash")


@router.get("/daily-summary")
def daily_summary(date: Optional[date] = None, db: Session = Depends(get_db)):
    return crud_close_cash.get_daily_summary(db, date)


@router.post("/validate", response_model=CashCloseValidation)
def validate_close(data: CashCloseCreate, db: Session = Depends(get_db)):
    return crud_close_cash.validate_cash_close(db, data)


@router.post("/close", status_code=status.HTTP_201_CREATED)
def close_cash(
    data: CashCloseCreate,
    request: Request,
    db: Session = Depends(get_db),
    audit_user: str = Depends(get_audit_user),
):
    validation = crud_close_cash.validate_cash_close(db, data)
    if not validation["valid"]:
        code = 409 if validation["error"] == "Cash has already been closed for this date" else 400
        raise HTTPException(status_code=code, detail=validation["error"])

    try:
        db_close = crud_close_cash.close_cash(db, data, add_audit_fields_for_insert({}, audit_user))
        record_audit(
            db, request, "daily_cash_close", db_close.close_id, "CREATE",
            f"Cash Closed for {data.close_date.isoformat()}: {db_close.total_amount}",
            new_values=sqlalchemy_to_dict(db_close),
        )
        db.commit()
    except IntegrityError:
        # A concurrent request closed the same day first
        db.rollback()
        raise HTTPException(status_code=409, detail="Cash has already been closed for this date")

    logger.info(f"Cash closed for {data.close_date} (ID: {db_close.close_id}, total {data.total_amount}) by user {audit_user}")
    return {"message": "Cash closed successfully", "close_id": db_close.close_id}


@router.get("/history", response_model=CashCloseHistory)
def close_history(
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=500),
    date_from: Optional[date] = None,
    date_to: Optional[date] = None,
    db: Session = Depends(get_db),
):
    history = crud_close_cash.get_cash_close_history(db, page, limit, date_from, date_to)
    history["records"] = [CashClose.model_validate(r) for r in history["records"]]
    return history


@router.get("/analytics")
def close_analytics(date_from: Optional[date] = None, date_to: Optional[date] = None, db: Session = Depends(get_db)):
    return crud_close_cash.get_cash_close_analytics(db, date_from, date_to)


@router.get("/status/{close_date}")
def close_status(close_date: date, db: Session = Depends(get_db)):
    return {"date": close_date.isoformat(), "isClosed": crud_close_cash.is_cash_closed(db, close_date)}


@router.get("/unclosed-dates")
def unclosed_dates(date_from: date, date_to: date, db: Session = Depends(get_db)):
    if date_from > date_to:
        raise HTTPException(status_code=400, detail="date_from must not be after date_to")
    dates = crud_close_cash.get_unclosed_dates(db, date_from, date_to)
    return {"unclosedDates": dates, "count": len(dates)}


@router.get("/{close_id}", response_model=CashClose)
def read_close(close_id: int, db: Session = Depends(get_db)):
    db_close = crud_close_cash.get_cash_close_by_id(db, close_id)
    if db_close is None:
        raise HTTPException(status_code=404, detail="Cash close record not found")
    return db_close


@router.put("/{close_id}", dependencies=[Depends(require_role(["admin", "manager"]))])
def update_close(
    close_id: int,
    data: CashCloseUpdate,
    request: Request,
    db: Session = Depends(get_db),
    audit_user: str = Depends(get_audit_user),
):
    db_close = crud_close_cash.get_cash_close_by_id(db, close_id)
    if db_close is None:
        raise HTTPException(status_code=404, detail="Cash close record not found")

    old_values = sqlalchemy_to_dict(db_close)
    error = crud_close_cash.update_cash_close(db, db_close, data, add_audit_fields_for_update({}, audit_user))
    if error:
        raise HTTPException(status_code=400, detail=error)

    db.flush()
    record_audit(
        db, request, "daily_cash_close", close_id, "UPDATE",
        f"Cash Close Updated for {db_close.close_date.isoformat()}",
        old_values=old_values,
        new_values=sqlalchemy_to_dict(db_close),
    )
    db.commit()
    db.refresh(db_close)
    logger.info(f"Cash close {close_id} updated by user {audit_user}")
    return {"message": "Cash close record updated successfully", "record": CashClose.model_validate(db_close)}
