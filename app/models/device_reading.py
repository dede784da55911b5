from sqlalchemy import Column, BigInteger, Integer, Float, String, DateTime, JSON, ForeignKey, Index
from app.models.user import Base


class DeviceReading(Base):
    __tablename__ = "device_readings"
    __table_args__ = (
        Index("ix_device_readings_device_recorded", "device_id", "recorded_at"),
    )

    id = Column(BigInteger().with_variant(Integer, "sqlite"), primary_key=True)
    device_id = Column(BigInteger, ForeignKey("devices.id"), nullable=False)

    battery_level = Column(Float)
    input_watts = Column(Float)
    ac_input_watts = Column(Float)
    dc_input_watts = Column(Float)
    charging_type = Column(Float)
    output_watts = Column(Float)
    ac_output_watts = Column(Float)
    dc_output_watts = Column(Float)
    usb_output_watts = Column(Float)
    # minutes; positive = to full while charging, negative = to empty
    remaining_time = Column(Float)
    temperature = Column(Float)
    status = Column(String(20))
    raw_data = Column(JSON)

    recorded_at = Column(DateTime, nullable=False)
