from core.database import Base
from sqlalchemy import Column, Integer, String, Float, DateTime, Text, ForeignKey, Enum as SQLEnum
from datetime import datetime
import enum


class RepairStatus(str, enum.Enum):
    PENDING = "pending"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"
    ARCHIVED = "archived"


# Forward order of the repair workflow
STATUS_FLOW = [
    RepairStatus.PENDING,
    RepairStatus.IN_PROGRESS,
    RepairStatus.COMPLETED,
    RepairStatus.ARCHIVED,
]


class RepairRequest(Base):
    __tablename__ = "repair_requests"

    id = Column(String(32), primary_key=True, index=True)

    # Customer information
    customer_name = Column(String(255), nullable=False)
    customer_phone = Column(String(50), nullable=False)

    # Device information (weak references to the catalogue)
    device_brand_id = Column(String(32), index=True, nullable=False)
    device_model_id = Column(String(32), index=True, nullable=False)

    # Job details
    issue_type = Column(String(100), index=True, nullable=False)
    description = Column(Text, nullable=True)

    # Financial information
    labor_cost = Column(Float, default=0.0)
    total_cost = Column(Float, default=0.0)
    profit = Column(Float, default=0.0)

    status = Column(
        SQLEnum(RepairStatus, values_callable=lambda e: [m.value for m in e]),
        default=RepairStatus.PENDING,
        index=True,
    )

    # Timestamps
    created_at = Column(DateTime, default=datetime.utcnow, index=True)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)
    completed_at = Column(DateTime, nullable=True)


class RepairPart(Base):
    """Spare part consumed by a repair, with the price charged at the time"""
    __tablename__ = "repair_parts"

    id = Column(String(32), primary_key=True, index=True)
    repair_id = Column(String(32), ForeignKey("repair_requests.id"), index=True, nullable=False)
    # No foreign key: the spare part may be deleted later
    spare_part_id = Column(String(32), index=True, nullable=False)
    quantity_used = Column(Integer, nullable=False)
    price_at_time = Column(Float, nullable=False, default=0.0)
    created_at = Column(DateTime, default=datetime.utcnow)
