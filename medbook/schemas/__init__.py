# Schemas package (re-export feature modules for stable imports)
from .appointments.appointment import *
from .hospitals.hospital import *
from .medical_tests.medical_test import *
from .notifications.notification import *
from .common.common import *
