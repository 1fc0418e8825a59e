from datetime import datetime

from sqlalchemy import BigInteger, Column, String, DateTime

from medai.core.ids import new_id, next_sequence
from medai.db.base import Base


class Patient(Base):
    __tablename__ = "patients"

    id = Column(String(36), primary_key=True, default=new_id)
    seq = Column(BigInteger, nullable=False, default=next_sequence, index=True)  # insertion order
    name = Column(String(255), nullable=False)
    phone = Column(String(64), nullable=False, default="")
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
