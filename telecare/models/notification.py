from sqlalchemy import Column, Integer, String, DateTime, Text, ForeignKey, Boolean
from sqlalchemy.orm import relationship
from telecare.core.database import Base
from telecare.utils.helpers import utcnow

class Notification(Base):
    __tablename__ = "notifications"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)

    notification_type = Column(String(100), nullable=False, index=True)
    title = Column(String(200), nullable=False)
    body = Column(Text, nullable=False)

    appointment_id = Column(Integer, ForeignKey("appointments.id", ondelete="SET NULL"), nullable=True)

    is_email_sent = Column(Boolean, default=False)
    email_sent_at = Column(DateTime, nullable=True)
    is_sms_sent = Column(Boolean, default=False)
    sms_sent_at = Column(DateTime, nullable=True)

    is_read = Column(Boolean, default=False, index=True)
    read_at = Column(DateTime, nullable=True)

    scheduled_for = Column(DateTime, nullable=True)

    created_at = Column(DateTime, default=utcnow, index=True)

    user = relationship("User")
    appointment = relationship("Appointment")
