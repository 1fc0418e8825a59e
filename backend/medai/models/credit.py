"""
Credit (udhari) ledger. One row per amount a patient owes from a credit sale.
Status moves pending -> paid only; there is no partial settlement.
"""
from datetime import datetime

from sqlalchemy import BigInteger, Column, String, ForeignKey, Numeric, DateTime, Text
from sqlalchemy.orm import relationship

from medai.core.ids import new_id, next_sequence
from medai.db.base import Base

CREDIT_PENDING = "pending"
CREDIT_PAID = "paid"


class Credit(Base):
    __tablename__ = "credits"

    id = Column(String(36), primary_key=True, default=new_id)
    seq = Column(BigInteger, nullable=False, default=next_sequence, index=True)  # insertion order
    patient_id = Column(String(36), ForeignKey("patients.id"), nullable=False, index=True)
    transaction_id = Column(String(36), ForeignKey("transactions.id"), nullable=True)
    amount = Column(Numeric(12, 2), nullable=False)
    status = Column(String(16), nullable=False, default=CREDIT_PENDING)  # pending | paid
    notes = Column(Text, nullable=True)
    date = Column(DateTime, default=datetime.utcnow, nullable=False)
    paid_at = Column(DateTime, nullable=True)

    patient = relationship("Patient", backref="credits")
