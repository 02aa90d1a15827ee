from mindcare.db.models.user import UserModel
from mindcare.db.models.doctor import DoctorModel
from mindcare.db.models.schedule import ScheduleModel
from mindcare.db.models.service import ServiceModel, DoctorServiceModel
from mindcare.db.models.appointment import AppointmentModel

__all__ = [
    "UserModel",
    "DoctorModel",
    "ScheduleModel",
    "ServiceModel",
    "DoctorServiceModel",
    "AppointmentModel",
]
