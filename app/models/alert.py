from sqlalchemy import Column, BigInteger, Integer, String, Boolean, DateTime, ForeignKey, Index
from datetime import datetime
from app.models.user import Base


class Alert(Base):
    __tablename__ = "alerts"
    __table_args__ = (
        Index("ix_alerts_device_type_created", "device_id", "type", "created_at"),
    )

    id = Column(BigInteger().with_variant(Integer, "sqlite"), primary_key=True)
    device_id = Column(BigInteger, ForeignKey("devices.id"), nullable=False)
    type = Column(String(32), nullable=False)  # BATTERY_LOW | TEMPERATURE_HIGH | DEVICE_OFFLINE
    title = Column(String(100), nullable=False)
    message = Column(String(500), nullable=False)
    severity = Column(String(16), nullable=False)
    is_read = Column(Boolean, default=False)
    created_at = Column(DateTime, default=datetime.utcnow)
