"""
Usage Models
"""

from pydantic import BaseModel
from typing import Optional
from datetime import date


class UsageResponse(BaseModel):
    """Monthly credits for the current user."""
    period_start: date
    used: int
    monthly_limit: int
    remaining: int
    available: int
    is_subscribed: bool = False
    plan_type: Optional[str] = None
