from fastapi import APIRouter, Depends, HTTPException, Request, status
from sqlalchemy import func
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session
from typing import List
import logging

from database import get_db
from models.users import User as UserModel, UserPosition
from schemas.users import ChangePasswordRequest, LoginRequest, TokenResponse, User, UserCreate
from utils import sqlalchemy_to_dict
from utils.audit import get_audit_user, log_audit_event, record_audit, add_audit_fields_for_insert, add_audit_fields_for_update, add_audit_fields_for_delete
from utils.auth_utils import (
    create_access_token,
    get_current_user,
    get_optional_user,
    hash_password,
    is_password_hash,
    require_role,
    token_payload_for,
    verify_password,
)

router = APIRouter(prefix="/api/auth", tags=["Auth"])
logger = logging.getLogger("auth")

USER_AUDIT_EXCLUDE = ("hashed_password",)


def _active_user(db: Session, user_id) -> UserModel:
    db_user = db.query(UserModel).filter(UserModel.id == user_id).first()
    if db_user is None:
        raise HTTPException(status_code=404, detail="User not found")
    return db_user


def _expires_in(request: Request) -> str:
    minutes = request.app.state.settings.jwt_expires_minutes
    return f"{minutes // 60}h" if minutes % 60 == 0 else f"{minutes}m"


@router.post("/login", response_model=TokenResponse)
def login(credentials: LoginRequest, request: Request, db: Session = Depends(get_db)):
    db_user = db.query(UserModel).filter(UserModel.username == credentials.username).first()
    if db_user is None or not verify_password(credentials.password, db_user.hashed_password):
        logger.warning(f"Failed login attempt for username '{credentials.username}'")
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid credentials")
    if not db_user.is_active:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Account is disabled")

    if not is_password_hash(db_user.hashed_password):
        # Imported account: replace the plain-text password with a hash now that it is known
        db_user.hashed_password = hash_password(credentials.password)
        db.commit()
        logger.info(f"Upgraded stored password of user '{db_user.username}' to bcrypt")

    token = create_access_token(request.app.state.settings, token_payload_for(db_user))
    log_audit_event(db, request, "user_accounts", db_user.id, "LOGIN", "User Login", emp_id=db_user.username)
    logger.info(f"User '{db_user.username}' logged in")
    return {"message": "Login successful", "token": token, "expiresIn": _expires_in(request), "user": User.model_validate(db_user)}


@router.post("/register", status_code=status.HTTP_201_CREATED, response_model=User)
def register_user(body: UserCreate, request: Request, db: Session = Depends(get_db)):
    """
    Create a user account.

    The very first account is created as an admin without authentication;
    after that only admins may add accounts.
    """
    existing_users = db.query(func.count(UserModel.id)).execution_options(include_deleted=True).scalar()
    position = body.position
    if existing_users:
        current = get_optional_user(request)
        if current is None:
            raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Authentication required")
        if current.get("position") != UserPosition.ADMIN.value:
            raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Insufficient permissions")
    else:
        position = UserPosition.ADMIN

    audit_user = get_audit_user(request)
    if audit_user == "anonymous":
        audit_user = body.username
    data = body.model_dump(exclude={"password", "position"})
    db_user = UserModel(
        **add_audit_fields_for_insert(data, audit_user),
        hashed_password=hash_password(body.password),
        position=position,
        is_active=True,
    )
    try:
        db.add(db_user)
        db.flush()
        record_audit(
            db, request, "user_accounts", db_user.id, "CREATE",
            f"User Created: {db_user.username} ({position.value})",
            new_values=sqlalchemy_to_dict(db_user, exclude=USER_AUDIT_EXCLUDE),
            emp_id=audit_user,
        )
        db.commit()
    except IntegrityError:
        db.rollback()
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail="Username already exists")

    db.refresh(db_user)
    logger.info(f"User '{db_user.username}' created as {position.value} by {audit_user}")
    return db_user


@router.post("/refresh")
def refresh_token(request: Request, db: Session = Depends(get_db), user: dict = Depends(get_current_user)):
    db_user = db.query(UserModel).filter(UserModel.id == user.get("id")).first()
    if db_user is None or not db_user.is_active:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="User not found")
    token = create_access_token(request.app.state.settings, token_payload_for(db_user))
    return {"success": True, "message": "Token refreshed successfully", "token": token, "expiresIn": _expires_in(request), "user": User.model_validate(db_user)}


@router.post("/logout")
def logout(request: Request, db: Session = Depends(get_db), user: dict = Depends(get_current_user)):
    log_audit_event(db, request, "user_accounts", user.get("id"), "LOGOUT", "User Logout", emp_id=user.get("username"))
    logger.info(f"User '{user.get('username')}' logged out")
    return {"success": True, "message": "Logged out successfully"}


@router.get("/profile", response_model=User)
def profile(db: Session = Depends(get_db), user: dict = Depends(get_current_user)):
    return _active_user(db, user.get("id"))


@router.post("/change-password")
def change_password(
    body: ChangePasswordRequest,
    request: Request,
    db: Session = Depends(get_db),
    user: dict = Depends(get_current_user),
    audit_user: str = Depends(get_audit_user),
):
    db_user = _active_user(db, user.get("id"))
    if not verify_password(body.current_password, db_user.hashed_password):
        raise HTTPException(status_code=400, detail="Current password is incorrect")

    db_user.hashed_password = hash_password(body.new_password)
    for key, value in add_audit_fields_for_update({}, audit_user).items():
        setattr(db_user, key, value)
    record_audit(db, request, "user_accounts", db_user.id, "UPDATE", f"Password Changed: {db_user.username}")
    db.commit()
    logger.info(f"User '{db_user.username}' changed their password")
    return {"success": True, "message": "Password changed successfully"}


@router.get("/users", response_model=List[User], dependencies=[Depends(require_role(["admin"]))])
def list_users(db: Session = Depends(get_db)):
    return db.query(UserModel).order_by(UserModel.username).all()


@router.delete("/users/{user_id}", dependencies=[Depends(require_role(["admin"]))])
def deactivate_user(
    user_id: int,
    request: Request,
    db: Session = Depends(get_db),
    user: dict = Depends(get_current_user),
    audit_user: str = Depends(get_audit_user),
):
    if user.get("id") == user_id:
        raise HTTPException(status_code=400, detail="You cannot deactivate your own account")
    db_user = _active_user(db, user_id)

    old_values = sqlalchemy_to_dict(db_user, exclude=USER_AUDIT_EXCLUDE)
    db_user.is_active = False
    for key, value in add_audit_fields_for_delete(audit_user).items():
        setattr(db_user, key, value)
    record_audit(
        db, request, "user_accounts", user_id, "DELETE",
        f"User Deactivated: {db_user.username}",
        old_values=old_values,
    )
    db.commit()
    logger.info(f"User {user_id} deactivated by {audit_user}")
    return {"message": "User deactivated successfully"}
