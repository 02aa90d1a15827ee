# mindcare/db/models/doctor.py
from sqlalchemy import Boolean, Column, Integer, String, ForeignKey, true
from sqlalchemy.orm import relationship
from mindcare.db.base import Base

class DoctorModel(Base):
    __tablename__ = "doctors"

    user_id    = Column(Integer,
                        ForeignKey("users.id", ondelete="CASCADE"),
                        primary_key=True)

    first_name = Column(String(50), nullable=False)
    last_name  = Column(String(50), nullable=False)
    specialty  = Column(String(100),nullable=False)
    is_active  = Column(Boolean, nullable=False, default=True, server_default=true())

    user = relationship("UserModel", back_populates="doctor_profile")
    schedules = relationship("ScheduleModel", back_populates="doctor", cascade="all, delete-orphan")
    services = relationship("DoctorServiceModel", back_populates="doctor", cascade="all, delete-orphan")
