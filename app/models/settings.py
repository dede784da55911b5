from sqlalchemy import Column, BigInteger, Integer, Float, Boolean, DateTime, ForeignKey
from app.models.user import Base


class DataRetentionSettings(Base):
    __tablename__ = "data_retention_settings"

    id = Column(BigInteger().with_variant(Integer, "sqlite"), primary_key=True)
    user_id = Column(BigInteger, ForeignKey("users.id"), unique=True, nullable=False)
    retention_period_days = Column(Float, default=90)
    auto_cleanup_enabled = Column(Boolean, default=True)
    backup_enabled = Column(Boolean, default=False)
    backup_interval_hours = Column(Float)  # 24, 168 (weekly), 720 (monthly)
    last_backup_at = Column(DateTime)
    collection_interval_minutes = Column(Float, default=5)
    last_cleanup = Column(DateTime)
    last_collection_at = Column(DateTime)


class NotificationSettings(Base):
    __tablename__ = "notification_settings"

    id = Column(BigInteger().with_variant(Integer, "sqlite"), primary_key=True)
    user_id = Column(BigInteger, ForeignKey("users.id"), unique=True, nullable=False)
    device_alerts = Column(Boolean, default=True)
    low_battery = Column(Boolean, default=True)
    email_notifications = Column(Boolean, default=True)
    low_battery_threshold = Column(Float, default=20)
