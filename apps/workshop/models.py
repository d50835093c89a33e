from core.database import Base
from sqlalchemy import Column, String, DateTime, Text
from datetime import datetime


class WorkshopSettings(Base):
    """Single row holding the details printed on receipts"""
    __tablename__ = "workshop_settings"

    id = Column(String(32), primary_key=True, index=True)
    name = Column(String(255), nullable=False)
    address = Column(Text, default="")
    phone = Column(String(50), default="")
    thank_you_message = Column(Text, default="")
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)
