from sqlalchemy import Column, BigInteger, Integer, String, DateTime, ForeignKey, Index
from app.models.user import Base


class NotificationLog(Base):
    __tablename__ = "notification_logs"
    __table_args__ = (
        Index("ix_notification_logs_user_sent", "user_id", "sent_at"),
    )

    id = Column(BigInteger().with_variant(Integer, "sqlite"), primary_key=True)
    user_id = Column(BigInteger, ForeignKey("users.id"), nullable=False)
    type = Column(String(64), nullable=False)
    email = Column(String(255))
    device_id = Column(BigInteger, ForeignKey("devices.id"))
    subject = Column(String(255))
    message_id = Column(String(255))
    status = Column(String(16), nullable=False)  # sent | failed
    error_message = Column(String(1000))
    sent_at = Column(DateTime, nullable=False)
