import logging
from dataclasses import dataclass
from typing import Callable, Optional

from fastapi import Depends, HTTPException, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlmodel.ext.asyncio.session import AsyncSession

from .application.ports.notifier import BookingNotifier
from .application.ports.unit_of_work import UnitOfWork
from .application.scheduling.policy import SchedulingPolicy
from .application.services.appointments_service import AppointmentsService
from .application.services.booking_service import BookingService
from .database import get_session
from .infrastructure.persistence.sqlalchemy.unit_of_work import SqlUnitOfWork
from .services.catalog.catalog_service import CatalogService
from .services.notifications.notification_service import NotificationService
from .utils import decode_jwt_token

logger = logging.getLogger(__name__)

# Auth scheme
oauth2_scheme = HTTPBearer(auto_error=False)


@dataclass
class CurrentUser:
    id: str
    name: Optional[str] = None
    phone: Optional[str] = None
    role: str = "patient"

    @property
    def is_admin(self) -> bool:
        return self.role == "admin"


# Dependency to get current user from JWT
def get_current_user(request: Request, credentials: HTTPAuthorizationCredentials = Depends(oauth2_scheme)) -> CurrentUser:
    token = None
    if credentials and credentials.credentials:
        token = credentials.credentials
    else:
        # Fallback to cookie
        token = request.cookies.get("access_token")
    if not token:
        raise HTTPException(status_code=401, detail="Authentication required")
    payload = decode_jwt_token(token)
    if not payload:
        logger.warning("JWT token decode failed - invalid or expired token")
        raise HTTPException(status_code=401, detail="Invalid or expired token")
    user_id = payload.get("sub")
    if not user_id:
        raise HTTPException(status_code=401, detail="Invalid token: missing user ID")
    return CurrentUser(
        id=str(user_id),
        name=payload.get("name"),
        phone=payload.get("phone"),
        role=payload.get("role", "patient"),
    )


def require_admin(current_user: CurrentUser = Depends(get_current_user)) -> CurrentUser:
    if not current_user.is_admin:
        raise HTTPException(status_code=403, detail="Admin access required")
    return current_user


def get_policy(request: Request) -> SchedulingPolicy:
    return request.app.state.policy


def get_uow_factory(request: Request) -> Callable[[], UnitOfWork]:
    session_factory = request.app.state.session_factory
    return lambda: SqlUnitOfWork(session_factory)


def get_booking_service(
    uow_factory: Callable[[], UnitOfWork] = Depends(get_uow_factory),
    policy: SchedulingPolicy = Depends(get_policy),
) -> BookingService:
    return BookingService(uow_factory=uow_factory, policy=policy)


def get_appointments_service(uow_factory: Callable[[], UnitOfWork] = Depends(get_uow_factory)) -> AppointmentsService:
    return AppointmentsService(uow_factory=uow_factory)


def get_catalog_service(session: AsyncSession = Depends(get_session)) -> CatalogService:
    return CatalogService(session)


def get_notification_service(session: AsyncSession = Depends(get_session)) -> NotificationService:
    return NotificationService(session)


def get_notifier(request: Request) -> BookingNotifier:
    return request.app.state.notifier
