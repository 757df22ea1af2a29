import enum

from sqlalchemy import Column, Integer, String, Boolean, Enum

from database import Base
from models.audit_mixin import AuditMixin


class UserPosition(str, enum.Enum):
    ADMIN = "admin"
    MANAGER = "manager"
    STAFF = "staff"


class User(Base, AuditMixin):
    __tablename__ = 'user_accounts'

    id = Column(Integer, primary_key=True, index=True)
    fname = Column(String(100), nullable=True)
    username = Column(String(100), unique=True, index=True, nullable=False)
    hashed_password = Column(String(255), nullable=False)
    city = Column(String(100), nullable=True)
    phone = Column(String(32), nullable=True)
    position = Column(Enum(UserPosition, values_callable=lambda e: [m.value for m in e]), default=UserPosition.STAFF, nullable=False)
    image = Column(String(500), nullable=True)
    is_active = Column(Boolean, default=True, nullable=False)

    def __repr__(self):
        return f"<User(id={self.id}, username={self.username}, position={self.position}, is_active={self.is_active})>"
