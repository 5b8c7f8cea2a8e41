"""Patient profile model."""
from sqlalchemy import Column, Integer, ForeignKey
from sqlalchemy.orm import relationship
from telecare.core.database import Base
from telecare.models.base import IDMixin, TimestampMixin


class Patient(IDMixin, TimestampMixin, Base):
    __tablename__ = "patients"

    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), unique=True, nullable=False)

    user = relationship("User", back_populates="patient")

    @property
    def name(self) -> str:
        return self.user.name if self.user else ""
