from core.database import Base
from sqlalchemy import Column, String, DateTime, ForeignKey
from datetime import datetime


class Brand(Base):
    __tablename__ = "brands"

    id = Column(String(32), primary_key=True, index=True)
    name = Column(String(255), index=True, nullable=False)
    created_at = Column(DateTime, default=datetime.utcnow)


class DeviceModel(Base):
    __tablename__ = "device_models"

    id = Column(String(32), primary_key=True, index=True)
    name = Column(String(255), index=True, nullable=False)
    brand_id = Column(String(32), ForeignKey("brands.id"), index=True, nullable=False)
    created_at = Column(DateTime, default=datetime.utcnow)
