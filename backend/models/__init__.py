from models.audit_log import AuditLog
from models.users import User
from models.customers import Customer
from models.orders import Order, OrderItem
from models.payments import Payment
from models.register import RegisterEntry
from models.register_legacy import LegacyRegisterEntry
from models.close_cash import DailyCashClose

__all__ = ['AuditLog', 'Customer', 'DailyCashClose', 'LegacyRegisterEntry', 'Order', 'OrderItem', 'Payment', 'RegisterEntry', 'User',]
