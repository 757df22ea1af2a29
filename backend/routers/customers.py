from fastapi import APIRouter, Depends, HTTPException, Request, status
from sqlalchemy import func, or_
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session
from typing import List, Optional
import logging

from database import get_db
from models.customers import Customer as CustomerModel, CustomerStatus
from models.orders import Order as OrderModel
from schemas.customers import Customer, CustomerCreate, CustomerUpdate, CustomerWithStats
from utils import sqlalchemy_to_dict
from utils.audit import get_audit_user, record_audit, add_audit_fields_for_insert, add_audit_fields_for_update, add_audit_fields_for_delete
from utils.auth_utils import get_current_user, require_role

router = APIRouter(prefix="/api/customers", tags=["Customers"], dependencies=[Depends(get_current_user)])
logger = logging.getLogger("customers")


def _customers_with_stats(db: Session):
    order_stats = (
        db.query(
            OrderModel.customer_id.label("customer_id"),
            func.count(OrderModel.order_id).label("total_orders"),
            func.coalesce(func.sum(OrderModel.total_amount), 0).label("total_spent"),
            func.max(OrderModel.order_date).label("last_order_date"),
        )
        .filter(OrderModel.deleted_at.is_(None))
        .group_by(OrderModel.customer_id)
        .subquery()
    )
    return db.query(
        CustomerModel,
        order_stats.c.total_orders,
        order_stats.c.total_spent,
        order_stats.c.last_order_date,
    ).outerjoin(order_stats, order_stats.c.customer_id == CustomerModel.customer_id)


def _to_stats(row) -> CustomerWithStats:
    customer, total_orders, total_spent, last_order_date = row
    return CustomerWithStats(
        **Customer.model_validate(customer).model_dump(),
        total_orders=total_orders or 0,
        total_spent=total_spent or 0,
        last_order_date=last_order_date,
    )


def _duplicate_phone(db: Session, phone_number: str, exclude_id: Optional[int] = None) -> bool:
    query = db.query(CustomerModel).filter(CustomerModel.active_phone_number == phone_number)
    if exclude_id is not None:
        query = query.filter(CustomerModel.customer_id != exclude_id)
    return query.first() is not None


@router.get("/", response_model=List[CustomerWithStats])
def read_customers(
    skip: int = 0,
    limit: int = 100,
    status: Optional[CustomerStatus] = None,
    db: Session = Depends(get_db),
):
    query = _customers_with_stats(db)
    if status:
        query = query.filter(CustomerModel.status == status)
    rows = query.order_by(CustomerModel.created_at.desc(), CustomerModel.customer_id.desc()).offset(skip).limit(limit).all()
    return [_to_stats(row) for row in rows]


@router.get("/search/{query}", response_model=List[Customer])
def search_customers(query: str, db: Session = Depends(get_db)):
    term = f"%{query.strip()}%"
    return (
        db.query(CustomerModel)
        .filter(or_(
            CustomerModel.customer_name.like(term),
            CustomerModel.phone_number.like(term),
            CustomerModel.email.like(term),
        ))
        .order_by(CustomerModel.customer_name)
        .limit(20)
        .all()
    )


@router.get("/{customer_id}", response_model=CustomerWithStats)
def read_customer(customer_id: int, db: Session = Depends(get_db)):
    row = _customers_with_stats(db).filter(CustomerModel.customer_id == customer_id).first()
    if row is None:
        raise HTTPException(status_code=404, detail="Customer not found")
    return _to_stats(row)


@router.post("/", status_code=status.HTTP_201_CREATED)
def create_customer(
    customer: CustomerCreate,
    request: Request,
    db: Session = Depends(get_db),
    audit_user: str = Depends(get_audit_user),
):
    if _duplicate_phone(db, customer.phone_number):
        raise HTTPException(status_code=409, detail="Phone number already exists")

    data = add_audit_fields_for_insert(customer.model_dump(), audit_user)
    db_customer = CustomerModel(**data, active_phone_number=customer.phone_number)
    try:
        db.add(db_customer)
        db.flush()
        record_audit(
            db, request, "customers", db_customer.customer_id, "CREATE",
            f"Customer Created: {db_customer.customer_name}",
            new_values=sqlalchemy_to_dict(db_customer),
        )
        db.commit()
    except IntegrityError:
        # Two requests raced past the duplicate check above
        db.rollback()
        raise HTTPException(status_code=409, detail="Phone number already exists")

    db.refresh(db_customer)
    logger.info(f"Customer '{db_customer.customer_name}' (ID: {db_customer.customer_id}) created by user {audit_user}")
    return {
        "message": "Customer created successfully",
        "customer_id": db_customer.customer_id,
        "customer": Customer.model_validate(db_customer),
    }


@router.put("/{customer_id}")
def update_customer(
    customer_id: int,
    customer: CustomerUpdate,
    request: Request,
    db: Session = Depends(get_db),
    audit_user: str = Depends(get_audit_user),
):
    db_customer = db.query(CustomerModel).filter(CustomerModel.customer_id == customer_id).first()
    if db_customer is None:
        raise HTTPException(status_code=404, detail="Customer not found")

    changes = customer.model_dump(exclude_unset=True)
    if not changes:
        raise HTTPException(status_code=400, detail="No valid fields to update")
    if "phone_number" in changes and _duplicate_phone(db, changes["phone_number"], exclude_id=customer_id):
        raise HTTPException(status_code=409, detail="Phone number already exists")

    old_values = sqlalchemy_to_dict(db_customer)
    for key, value in add_audit_fields_for_update(changes, audit_user).items():
        setattr(db_customer, key, value)
    if "phone_number" in changes:
        db_customer.active_phone_number = changes["phone_number"]

    try:
        db.flush()
        record_audit(
            db, request, "customers", customer_id, "UPDATE",
            f"Customer Updated: {db_customer.customer_name}",
            old_values=old_values,
            new_values=sqlalchemy_to_dict(db_customer),
        )
        db.commit()
    except IntegrityError:
        db.rollback()
        raise HTTPException(status_code=409, detail="Phone number already exists")

    db.refresh(db_customer)
    logger.info(f"Customer '{db_customer.customer_name}' (ID: {customer_id}) updated by user {audit_user}")
    return {"message": "Customer updated successfully", "customer": Customer.model_validate(db_customer)}


@router.delete("/{customer_id}", dependencies=[Depends(require_role(["admin"]))])
def delete_customer(
    customer_id: int,
    request: Request,
    db: Session = Depends(get_db),
    audit_user: str = Depends(get_audit_user),
):
    db_customer = db.query(CustomerModel).filter(CustomerModel.customer_id == customer_id).first()
    if db_customer is None:
        raise HTTPException(status_code=404, detail="Customer not found")

    live_orders = db.query(func.count(OrderModel.order_id)).filter(OrderModel.customer_id == customer_id).scalar()
    if live_orders:
        logger.warning(f"Refused to delete customer {customer_id} with {live_orders} orders (user {audit_user})")
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail=f"Cannot delete customer with existing orders ({live_orders})",
        )

    old_values = sqlalchemy_to_dict(db_customer)
    for key, value in add_audit_fields_for_delete(audit_user).items():
        setattr(db_customer, key, value)
    # Frees the phone number for a new live customer
    db_customer.active_phone_number = None

    record_audit(
        db, request, "customers", customer_id, "DELETE",
        f"Customer Deleted: {db_customer.customer_name}",
        old_values=old_values,
    )
    db.commit()
    logger.info(f"Customer '{db_customer.customer_name}' (ID: {customer_id}) deleted by user {audit_user}")
    return {"message": "Customer deleted successfully"}
