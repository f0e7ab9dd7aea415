from fastapi import APIRouter, Depends

from ..application.scheduling.policy import SchedulingPolicy
from ..dependencies import get_policy
from ..schemas.appointments.appointment import AvailabilityConfig, AvailabilityConfigResponse

router = APIRouter(prefix="/config", tags=["Config"])


@router.get("/availability", response_model=AvailabilityConfigResponse)
async def get_availability_config(policy: SchedulingPolicy = Depends(get_policy)):
    """Booking days and business hours, for clients building a date picker."""
    return AvailabilityConfigResponse(
        availability=AvailabilityConfig(
            allowedDays=list(policy.allowed_days),
            opens=policy.opens_label,
            closes=policy.closes_label,
            stepMinutes=policy.step,
            defaultDurationMinutes=policy.default_duration,
        )
    )
