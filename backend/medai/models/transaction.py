"""
Transaction log. Append-only: rows are written once at checkout and never
updated or deleted afterwards.
"""
from datetime import datetime

from sqlalchemy import BigInteger, Column, Integer, String, ForeignKey, Numeric, DateTime, Boolean
from sqlalchemy.orm import relationship

from medai.core.ids import new_id, next_sequence
from medai.db.base import Base


class Transaction(Base):
    __tablename__ = "transactions"

    id = Column(String(36), primary_key=True, default=new_id)
    seq = Column(BigInteger, nullable=False, default=next_sequence, index=True)  # insertion order
    patient_id = Column(String(36), ForeignKey("patients.id"), nullable=False, index=True)
    total_amount = Column(Numeric(12, 2), nullable=False)
    paid_amount = Column(Numeric(12, 2), nullable=False)
    credit_amount = Column(Numeric(12, 2), nullable=False, default=0)
    total_cost = Column(Numeric(12, 2), nullable=False)
    profit = Column(Numeric(12, 2), nullable=False)
    is_credit = Column(Boolean, nullable=False, default=False)
    date = Column(DateTime, default=datetime.utcnow, nullable=False, index=True)

    patient = relationship("Patient", backref="transactions")
    lines = relationship(
        "TransactionLine",
        back_populates="transaction",
        cascade="all, delete-orphan",
        order_by="TransactionLine.position",
    )


class TransactionLine(Base):
    """One medicine in a sale, priced at the moment of sale."""
    __tablename__ = "transaction_lines"

    id = Column(String(36), primary_key=True, default=new_id)
    transaction_id = Column(String(36), ForeignKey("transactions.id", ondelete="CASCADE"), nullable=False)
    position = Column(Integer, nullable=False, default=0)
    # medicine rows may be deleted later; the name snapshot keeps history readable
    medicine_id = Column(String(36), ForeignKey("medicines.id", ondelete="SET NULL"), nullable=True)
    medicine_name = Column(String(255), nullable=False)
    quantity = Column(Integer, nullable=False)
    unit_price = Column(Numeric(12, 2), nullable=False)  # mrp at sale time
    unit_cost = Column(Numeric(12, 2), nullable=False)  # cost_price at sale time
    price = Column(Numeric(12, 2), nullable=False)  # quantity * unit_price

    transaction = relationship("Transaction", back_populates="lines")
