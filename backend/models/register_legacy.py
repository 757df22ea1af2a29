from sqlalchemy import Column, Integer, BigInteger, String, Text, Numeric, Date

from database import Base
from models.audit_mixin import TimestampMixin


class LegacyRegisterEntry(Base, TimestampMixin):
    """Rows of the old paper-ledger import. Column names follow the imported sheet.

    This table has no soft-delete columns; deletes are physical.
    """
    __tablename__ = "register_legacy"

    item_num = Column("itemNum", Integer, primary_key=True, index=True)
    name = Column("NAME", String(150), nullable=False)
    descr = Column("descr", Text, nullable=False, default="")
    quan = Column("quan", Integer, nullable=True)
    unitprice = Column("unitprice", Numeric(12, 2), nullable=True)
    amntword = Column("amntword", String(255), nullable=True)
    duedate = Column("duedate", Date, nullable=True)
    deliverdate = Column("deliverdate", Date, nullable=True)
    total_amount = Column("totalAmount", Numeric(12, 2), nullable=False, default=0)
    mobnum = Column("mobnum", BigInteger, nullable=False, index=True)
    pay_check = Column("payCheck", String(10), nullable=False, default="pending")
    col = Column("col", String(50), nullable=True)
    siz = Column("siz", String(50), nullable=True)
