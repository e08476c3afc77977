"""
Usage API Routes
"""

from fastapi import APIRouter, HTTPException, Depends

from backend.api.deps import get_current_user_id, get_usage_ledger
from backend.core.logging import get_logger
from backend.core.usage import UsageLedger
from backend.models.usage import UsageResponse

router = APIRouter()
logger = get_logger("usage")


@router.get("/", response_model=UsageResponse)
async def get_usage(
    user_id: str = Depends(get_current_user_id),
    ledger: UsageLedger = Depends(get_usage_ledger)
):
    """Monthly credits for the current user."""
    try:
        subscription = await ledger.get_subscription(user_id)
        usage = await ledger.get_monthly_usage(user_id, subscription.plan)
    except Exception as e:
        logger.error(f"Usage lookup error: {e}")
        raise HTTPException(status_code=500, detail="Failed to load credits")

    return UsageResponse(
        period_start=usage.period_start,
        used=usage.used,
        monthly_limit=usage.monthly_limit,
        remaining=usage.remaining,
        available=ledger.available_credits(usage, subscription),
        is_subscribed=subscription.is_active,
        plan_type=subscription.plan,
    )
