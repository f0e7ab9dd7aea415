# Routers package
from . import admin_router
from . import appointments_router
from . import catalog_router
from . import config_router
from . import notifications_router

__all__ = [
    "admin_router",
    "appointments_router",
    "catalog_router",
    "config_router",
    "notifications_router",
]
