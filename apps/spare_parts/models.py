from core.database import Base
from sqlalchemy import Column, Integer, String, Float, DateTime
from datetime import datetime


class SparePart(Base):
    __tablename__ = "spare_parts"

    id = Column(String(32), primary_key=True, index=True)
    name = Column(String(255), index=True, nullable=False)
    part_type = Column(String(100), index=True, nullable=False)  # screen, battery, charging port...
    screen_quality = Column(String(100), nullable=True)  # only meaningful for screens
    # Weak references: deleting a brand or model leaves these dangling
    brand_id = Column(String(32), index=True, nullable=False)
    model_id = Column(String(32), index=True, nullable=False)
    quantity = Column(Integer, default=0, nullable=False)
    purchase_price = Column(Float, default=0.0, nullable=False)
    selling_price = Column(Float, default=0.0, nullable=False)
    low_stock_alert = Column(Integer, default=0)  # Alert when quantity falls to this level
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)
