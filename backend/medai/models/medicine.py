from datetime import datetime

from sqlalchemy import BigInteger, Column, Integer, String, ForeignKey, Numeric, Date, DateTime
from sqlalchemy.orm import relationship

from medai.core.ids import new_id, next_sequence
from medai.db.base import Base


class Medicine(Base):
    """
    Catalog entry for one product.

    `stock` and `sold` only move together through a sale; quick adjustments
    and edits touch `stock` alone and never take it below zero.
    """
    __tablename__ = "medicines"

    id = Column(String(36), primary_key=True, default=new_id)
    seq = Column(BigInteger, nullable=False, default=next_sequence, index=True)  # insertion order
    name = Column(String(255), nullable=False, index=True)
    category = Column(String(64), nullable=False, default="Tablet")
    cost_price = Column(Numeric(12, 2), nullable=False, default=0)  # ₹ per unit, incl. GST
    mrp = Column(Numeric(12, 2), nullable=False, default=0)  # ₹ per unit charged to customer
    stock = Column(Integer, nullable=False, default=0)
    sold = Column(Integer, nullable=False, default=0)
    units_per_package = Column(Integer, nullable=False, default=1)
    expiry_date = Column(Date, nullable=True)
    agency_id = Column(String(36), ForeignKey("agencies.id", ondelete="SET NULL"), nullable=True)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)

    agency = relationship("Agency", back_populates="medicines")

    def __repr__(self):
        return f"<Medicine {self.name} stock={self.stock} sold={self.sold}>"
