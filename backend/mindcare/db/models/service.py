# mindcare/db/models/service.py
from sqlalchemy import CheckConstraint, Column, Integer, String, ForeignKey
from sqlalchemy.orm import relationship
from mindcare.db.base import Base


class ServiceModel(Base):
    __tablename__ = "services"

    id = Column(Integer, primary_key=True)
    name = Column(String(255), nullable=False)
    description = Column(String(500), nullable=False)
    duration_minutes = Column(Integer, nullable=False, default=45, server_default="45")

    __table_args__ = (
        CheckConstraint("duration_minutes > 0", name="ck_services_duration_positive"),
    )


class DoctorServiceModel(Base):
    """A doctor's offer of a service at a price (the duration comes from the service)."""

    __tablename__ = "doctor_services"

    doctor_id = Column(
        Integer, ForeignKey("doctors.user_id", ondelete="CASCADE"), primary_key=True
    )
    service_id = Column(
        Integer, ForeignKey("services.id", ondelete="CASCADE"), primary_key=True
    )
    amount = Column(Integer, nullable=False)  # price for this service

    doctor = relationship("DoctorModel", back_populates="services")
    service = relationship("ServiceModel")
