from datetime import datetime, date

from sqlalchemy import BigInteger, Column, String, ForeignKey, Numeric, Date, DateTime
from sqlalchemy.orm import relationship

from medai.core.ids import new_id, next_sequence
from medai.db.base import Base


class Agency(Base):
    """A medicine supplier."""
    __tablename__ = "agencies"

    id = Column(String(36), primary_key=True, default=new_id)
    seq = Column(BigInteger, nullable=False, default=next_sequence, index=True)  # insertion order
    name = Column(String(255), nullable=False)
    contact = Column(String(64), nullable=False, default="")
    address = Column(String(512), nullable=False, default="")
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)

    medicines = relationship("Medicine", back_populates="agency")
    bills = relationship("AgencyBill", back_populates="agency")


class AgencyBill(Base):
    """
    Amount owed to a supplier for one purchase bill.

    pending_amount == max(0, total_amount - paid_amount), recomputed on every
    payment. Overpayment drives pending to zero; the excess is only audited.
    """
    __tablename__ = "agency_bills"

    id = Column(String(36), primary_key=True, default=new_id)
    seq = Column(BigInteger, nullable=False, default=next_sequence, index=True)  # insertion order
    agency_id = Column(String(36), ForeignKey("agencies.id"), nullable=False, index=True)
    bill_number = Column(String(64), nullable=False)
    date = Column(Date, nullable=False, default=date.today)
    total_amount = Column(Numeric(12, 2), nullable=False)
    paid_amount = Column(Numeric(12, 2), nullable=False, default=0)
    pending_amount = Column(Numeric(12, 2), nullable=False)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)

    agency = relationship("Agency", back_populates="bills")
