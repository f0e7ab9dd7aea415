# Models package (re-export feature modules for stable imports)
from .users.user import User
from .health.hospital import Hospital
from .health.medical_test import MedicalTest
from .health.appointment import Appointment
from .health.notification import Notification

__all__ = [
    "User",
    "Hospital",
    "MedicalTest",
    "Appointment",
    "Notification",
]
