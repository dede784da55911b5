from sqlalchemy import Column, BigInteger, Integer, String, Boolean, DateTime, ForeignKey
from datetime import datetime
from app.models.user import Base

class Device(Base):
    __tablename__ = "devices"

    id = Column(BigInteger().with_variant(Integer, "sqlite"), primary_key=True)
    user_id = Column(BigInteger, ForeignKey("users.id"), nullable=False, index=True)
    device_sn = Column(String(100), unique=True, nullable=False)
    device_name = Column(String(100))
    device_type = Column(String(50), default="DELTA_2")
    is_active = Column(Boolean, default=True)
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow)
