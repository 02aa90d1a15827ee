# mindcare/db/models/schedule.py
from sqlalchemy import CheckConstraint, Column, Integer, String, Time, ForeignKey
from sqlalchemy.orm import relationship
from mindcare.db.base import Base


class ScheduleModel(Base):
    """One weekly availability window: ``[start_time, end_time)`` on ``day``, in UTC."""

    __tablename__ = "schedules"

    id = Column(Integer, primary_key=True)
    doctor_id = Column(
        Integer, ForeignKey("doctors.user_id", ondelete="CASCADE"), nullable=False, index=True
    )
    day = Column(String(10), nullable=False)  # DayOfWeek value, e.g. 'monday'
    start_time = Column(Time, nullable=False)
    end_time = Column(Time, nullable=False)

    # overnight windows are not supported
    __table_args__ = (
        CheckConstraint("start_time < end_time", name="ck_schedules_window_order"),
    )

    doctor = relationship("DoctorModel", back_populates="schedules")
