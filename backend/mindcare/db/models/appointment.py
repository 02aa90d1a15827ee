# mindcare/db/models/appointment.py
from sqlalchemy import (
    CheckConstraint,
    Column,
    Integer,
    DateTime,
    String,
    Text,
    ForeignKey,
)
from sqlalchemy.orm import relationship
from mindcare.db.base import Base
from sqlalchemy.sql import func


class AppointmentModel(Base):
    __tablename__ = "appointments"

    id = Column(Integer, primary_key=True)
    patient_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    doctor_id = Column(Integer, ForeignKey("doctors.user_id"), nullable=False, index=True)
    service_id = Column(Integer, ForeignKey("services.id"), nullable=False)
    starts_at = Column(DateTime(timezone=True), nullable=False)
    ends_at = Column(DateTime(timezone=True), nullable=False)
    status = Column(
        String(20), default="scheduled", nullable=False
    )  # scheduled, confirmed, completed, cancelled
    cancellation_reason = Column(Text, nullable=True)
    notes = Column(Text, nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(
        DateTime(timezone=True), server_default=func.now(), onupdate=func.now()
    )
    deleted_at = Column(DateTime(timezone=True), nullable=True)  # soft delete

    # The overlap exclusion constraint (tstzrange, btree_gist) is created by
    # the initial migration; it has no portable declarative form.
    __table_args__ = (
        CheckConstraint("starts_at < ends_at", name="ck_appointments_interval_order"),
    )

    # Relationships
    patient = relationship("UserModel", foreign_keys=[patient_id])
    doctor = relationship("DoctorModel", foreign_keys=[doctor_id])
    service = relationship("ServiceModel", foreign_keys=[service_id])
