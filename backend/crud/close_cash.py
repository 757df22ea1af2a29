import logging
from datetime import date, timedelta
from decimal import Decimal
from typing import Any, Dict, List, Optional

from sqlalchemy import func
from sqlalchemy.orm import Session

from models.close_cash import DailyCashClose
from models.orders import Order, PaymentStatus
from models.payments import Payment, PaymentMethod, PaymentRecordStatus
from schemas.close_cash import CashCloseCreate, CashCloseUpdate

logger = logging.getLogger("close_cash")

TOLERANCE = Decimal("0.01")
METHOD_FIELDS = ("cash_amount", "card_amount", "mobile_amount", "bank_transfer_amount")


def _dec(value) -> Decimal:
    return Decimal(value) if value is not None else Decimal("0")


def _fmt(value: Decimal) -> str:
    return f"{Decimal(value):.2f}"


def total_mismatch_error(total, calculated) -> Optional[str]:
    if abs(_dec(calculated) - _dec(total)) > TOLERANCE:
        return f"Total amount ({_fmt(total)}) does not match sum of payment methods ({_fmt(calculated)})"
    return None


def get_daily_summary(db: Session, target_date: Optional[date] = None) -> Dict[str, Any]:
    target_date = target_date or date.today()

    orders = db.query(Order).filter(Order.order_date == target_date).all()
    order_stats = {
        "total_orders": len(orders),
        "total_order_value": sum((_dec(o.total_amount) for o in orders), Decimal("0")),
        "total_paid_amount": sum((_dec(o.paid_amount) for o in orders), Decimal("0")),
        "total_unpaid_amount": sum((_dec(o.total_amount) - _dec(o.paid_amount) for o in orders), Decimal("0")),
        "fully_paid_orders": sum(1 for o in orders if o.payment_status == PaymentStatus.PAID),
        "partially_paid_orders": sum(1 for o in orders if o.payment_status == PaymentStatus.PARTIAL),
        "unpaid_orders": sum(1 for o in orders if o.payment_status == PaymentStatus.UNPAID),
    }

    payment_rows = (
        db.query(
            Payment.payment_method,
            func.coalesce(func.sum(Payment.amount), 0).label("total_amount"),
            func.count(Payment.payment_id).label("transaction_count"),
        )
        .filter(func.date(Payment.payment_date) == target_date, Payment.status == PaymentRecordStatus.COMPLETED)
        .group_by(Payment.payment_method)
        .all()
    )
    payments = [
        {"payment_method": method.value, "total_amount": _dec(total), "transaction_count": count}
        for method, total, count in payment_rows
    ]
    cash = next((p for p in payments if p["payment_method"] == PaymentMethod.CASH.value), None)

    yesterday = (
        db.query(DailyCashClose)
        .filter(DailyCashClose.close_date == target_date - timedelta(days=1))
        .first()
    )

    return {
        "date": target_date.isoformat(),
        "orders": order_stats,
        "payments": payments,
        "cashTransactions": {
            "cash_received": cash["total_amount"] if cash else Decimal("0"),
            "cash_transaction_count": cash["transaction_count"] if cash else 0,
        },
        "expenses": {"total_expenses": Decimal("0"), "expense_count": 0},
        "yesterdayClose": {
            "cash_amount": _dec(yesterday.cash_amount) if yesterday else Decimal("0"),
            "total_amount": _dec(yesterday.total_amount) if yesterday else Decimal("0"),
        },
        "isClosed": is_cash_closed(db, target_date),
    }


def validate_cash_close(db: Session, data: CashCloseCreate) -> Dict[str, Any]:
    """
    Pre-flight checks for closing a day. Returns ``{"valid": bool, "error": str|None}``.

    Checks run in order: required fields, date already closed, negative
    amounts, then the per-method sum against ``total_amount``.
    """
    if data.close_date is None or data.total_amount is None:
        return {"valid": False, "error": "Close date and total amount are required"}

    if is_cash_closed(db, data.close_date):
        return {"valid": False, "error": "Cash has already been closed for this date"}

    amounts = [getattr(data, f) for f in METHOD_FIELDS] + [data.total_amount, data.expenses_amount]
    if any(_dec(a) < 0 for a in amounts):
        return {"valid": False, "error": "Amounts cannot be negative"}

    calculated = sum((_dec(getattr(data, f)) for f in METHOD_FIELDS), Decimal("0"))
    error = total_mismatch_error(data.total_amount, calculated)
    if error:
        return {"valid": False, "error": error}

    return {"valid": True, "error": None}


def close_cash(db: Session, data: CashCloseCreate, audit_fields: Dict[str, Any]) -> DailyCashClose:
    """Stage the close record. The caller validates first and commits."""
    db_close = DailyCashClose(
        close_date=data.close_date,
        cash_amount=_dec(data.cash_amount),
        card_amount=_dec(data.card_amount),
        mobile_amount=_dec(data.mobile_amount),
        bank_transfer_amount=_dec(data.bank_transfer_amount),
        total_amount=_dec(data.total_amount),
        expenses_amount=_dec(data.expenses_amount),
        notes=data.notes or "",
        **audit_fields,
    )
    db.add(db_close)
    db.flush()
    return db_close


def _date_filtered(db: Session, date_from: Optional[date], date_to: Optional[date]):
    query = db.query(DailyCashClose)
    if date_from:
        query = query.filter(DailyCashClose.close_date >= date_from)
    if date_to:
        query = query.filter(DailyCashClose.close_date <= date_to)
    return query


def get_cash_close_history(db: Session, page: int = 1, limit: int = 10, date_from: Optional[date] = None, date_to: Optional[date] = None) -> Dict[str, Any]:
    query = _date_filtered(db, date_from, date_to)
    total = query.count()
    records = (
        query.order_by(DailyCashClose.close_date.desc())
        .offset((page - 1) * limit)
        .limit(limit)
        .all()
    )
    return {
        "records": records,
        "pagination": {
            "page": page,
            "limit": limit,
            "total": total,
            "totalPages": (total + limit - 1) // limit,
        },
    }


def get_cash_close_by_id(db: Session, close_id: int) -> Optional[DailyCashClose]:
    return db.query(DailyCashClose).filter(DailyCashClose.close_id == close_id).first()


def update_cash_close(db: Session, db_close: DailyCashClose, data: CashCloseUpdate, audit_fields: Dict[str, Any]) -> Optional[str]:
    """
    Apply ``data`` to ``db_close``. Returns an error message and leaves the
    record untouched when the new amounts do not add up.
    """
    changes = data.model_dump(exclude_unset=True)
    if any(_dec(v) < 0 for k, v in changes.items() if k != "notes" and v is not None):
        return "Amounts cannot be negative"

    if any(changes.get(f) is not None for f in METHOD_FIELDS + ("total_amount",)):
        def merged(field):
            return _dec(changes[field]) if changes.get(field) is not None else _dec(getattr(db_close, field))

        calculated = sum((merged(f) for f in METHOD_FIELDS), Decimal("0"))
        error = total_mismatch_error(merged("total_amount"), calculated)
        if error:
            return error

    for key, value in changes.items():
        if value is not None:
            setattr(db_close, key, value)
    for key, value in audit_fields.items():
        setattr(db_close, key, value)
    return None


def get_cash_close_analytics(db: Session, date_from: Optional[date] = None, date_to: Optional[date] = None) -> Dict[str, Any]:
    records = _date_filtered(db, date_from, date_to).order_by(DailyCashClose.close_date.desc()).all()
    total_revenue = sum((_dec(r.total_amount) for r in records), Decimal("0"))

    def column_sum(field):
        return sum((_dec(getattr(r, field)) for r in records), Decimal("0"))

    summary = {
        "total_closes": len(records),
        "total_revenue": total_revenue,
        "avg_daily_revenue": (total_revenue / len(records)).quantize(Decimal("0.01")) if records else Decimal("0"),
        "total_cash": column_sum("cash_amount"),
        "total_card": column_sum("card_amount"),
        "total_mobile": column_sum("mobile_amount"),
        "total_bank_transfer": column_sum("bank_transfer_amount"),
        "total_expenses": column_sum("expenses_amount"),
        "first_close_date": records[-1].close_date if records else None,
        "last_close_date": records[0].close_date if records else None,
    }
    daily_breakdown = [
        {
            "close_date": r.close_date,
            "total_amount": r.total_amount,
            "cash_amount": r.cash_amount,
            "card_amount": r.card_amount,
            "mobile_amount": r.mobile_amount,
            "bank_transfer_amount": r.bank_transfer_amount,
            "expenses_amount": r.expenses_amount,
        }
        for r in records
    ]
    return {"summary": summary, "dailyBreakdown": daily_breakdown}


def is_cash_closed(db: Session, close_date: date) -> bool:
    return (
        db.query(func.count(DailyCashClose.close_id))
        .filter(DailyCashClose.close_date == close_date)
        .execution_options(include_deleted=True)
        .scalar()
    ) > 0


def get_unclosed_dates(db: Session, date_from: date, date_to: date) -> List[str]:
    if date_from > date_to:
        return []
    closed = {
        d for (d,) in db.query(DailyCashClose.close_date)
        .filter(DailyCashClose.close_date.between(date_from, date_to))
        .execution_options(include_deleted=True)
        .all()
    }
    days = (date_to - date_from).days
    return [
        (date_from + timedelta(days=i)).isoformat()
        for i in range(days + 1)
        if date_from + timedelta(days=i) not in closed
    ]
