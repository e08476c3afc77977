"""
Usage Credits

Monthly generation credits stored in Supabase, plus the credit guard the
generation engine consults around every scene.
"""

import asyncio
from dataclasses import dataclass
from datetime import date
from typing import Any, Dict, Optional

from postgrest.exceptions import APIError
from supabase import Client

from slidecraft.core.exceptions import CreditLimitError
from slidecraft.engine import CreditGuard

from .logging import get_logger

logger = get_logger("usage")

USAGE_TABLE = "usage_limits"
SUBSCRIPTIONS_TABLE = "subscriptions"
PROFILES_TABLE = "profiles"
USAGE_COLUMNS = "user_id, period_start, used, monthly_limit"
UNIQUE_VIOLATION = "23505"


@dataclass
class MonthlyUsage:
    user_id: str
    period_start: date
    used: int
    monthly_limit: int

    @property
    def remaining(self) -> int:
        return max(self.monthly_limit - self.used, 0)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "user_id": self.user_id,
            "period_start": self.period_start.isoformat(),
            "used": self.used,
            "monthly_limit": self.monthly_limit,
            "remaining": self.remaining,
        }


@dataclass
class SubscriptionStatus:
    is_active: bool = False
    plan_type: Optional[str] = None

    @property
    def plan(self) -> Optional[str]:
        return self.plan_type if self.is_active else None


def current_period_start(today: date = None) -> date:
    today = today or date.today()
    return today.replace(day=1)


class UsageLedger:
    """
    Monthly credit counter per user.

    The Supabase client is synchronous, so every query runs in a worker
    thread.
    """

    def __init__(
        self,
        client: Client,
        plan_credits: Dict[str, int],
        default_monthly_credits: int = 60,
        free_credit_cap: int = 3
    ):
        self.client = client
        self.plan_credits = plan_credits
        self.default_monthly_credits = default_monthly_credits
        self.free_credit_cap = free_credit_cap

    def limit_for(self, plan: Optional[str]) -> int:
        if plan and plan in self.plan_credits:
            return self.plan_credits[plan]
        return self.default_monthly_credits

    # ------------------------------------------------------------------
    # Sync queries
    # ------------------------------------------------------------------

    def _normalize(self, row: Dict[str, Any]) -> MonthlyUsage:
        period = row.get("period_start")
        return MonthlyUsage(
            user_id=row["user_id"],
            period_start=date.fromisoformat(period) if isinstance(period, str) else period,
            used=row.get("used") or 0,
            monthly_limit=row.get("monthly_limit") or self.default_monthly_credits,
        )

    def _select_usage(self, user_id: str, period: date) -> Optional[Dict[str, Any]]:
        response = self.client.table(USAGE_TABLE) \
            .select(USAGE_COLUMNS) \
            .eq("user_id", user_id) \
            .eq("period_start", period.isoformat()) \
            .limit(1) \
            .execute()
        rows = response.data or []
        return rows[0] if rows else None

    def _get_monthly_usage(self, user_id: str, plan: Optional[str]) -> MonthlyUsage:
        period = current_period_start()
        row = self._select_usage(user_id, period)
        if row:
            return self._normalize(row)

        try:
            response = self.client.table(USAGE_TABLE).insert({
                "user_id": user_id,
                "period_start": period.isoformat(),
                "used": 0,
                "monthly_limit": self.limit_for(plan),
            }).execute()
        except APIError as e:
            if e.code != UNIQUE_VIOLATION:
                raise
            # Another request created the row first.
            row = self._select_usage(user_id, period)
            if not row:
                raise
            return self._normalize(row)

        return self._normalize(response.data[0])

    def _record_generation(self, user_id: str, plan: Optional[str], amount: int) -> MonthlyUsage:
        usage = self._get_monthly_usage(user_id, plan)
        if usage.used + amount > usage.monthly_limit:
            raise CreditLimitError(amount, usage.remaining, usage.monthly_limit)

        response = self.client.table(USAGE_TABLE) \
            .update({"used": usage.used + amount}) \
            .eq("user_id", user_id) \
            .eq("period_start", usage.period_start.isoformat()) \
            .execute()

        if not response.data:
            raise RuntimeError(f"Usage row for {user_id} disappeared during update")
        return self._normalize(response.data[0])

    def _get_subscription(self, user_id: str) -> SubscriptionStatus:
        response = self.client.table(SUBSCRIPTIONS_TABLE) \
            .select("is_active, plan_type") \
            .eq("user_id", user_id) \
            .limit(1) \
            .execute()
        rows = response.data or []
        if not rows:
            return SubscriptionStatus()
        return SubscriptionStatus(
            is_active=bool(rows[0].get("is_active")),
            plan_type=rows[0].get("plan_type"),
        )

    def _mark_free_image_generated(self, user_id: str) -> None:
        self.client.table(PROFILES_TABLE) \
            .update({"has_generated_free_image": True}) \
            .eq("id", user_id) \
            .execute()

    # ------------------------------------------------------------------
    # Async API
    # ------------------------------------------------------------------

    async def get_monthly_usage(self, user_id: str, plan: Optional[str] = None) -> MonthlyUsage:
        """Usage for the current month, creating the row on first use."""
        return await asyncio.to_thread(self._get_monthly_usage, user_id, plan)

    async def record_generation(
        self,
        user_id: str,
        plan: Optional[str] = None,
        amount: int = 1
    ) -> MonthlyUsage:
        """
        Spend ``amount`` credits.

        Raises:
            CreditLimitError: the month's limit would be exceeded
        """
        return await asyncio.to_thread(self._record_generation, user_id, plan, amount)

    async def get_subscription(self, user_id: str) -> SubscriptionStatus:
        return await asyncio.to_thread(self._get_subscription, user_id)

    async def mark_free_image_generated(self, user_id: str) -> None:
        await asyncio.to_thread(self._mark_free_image_generated, user_id)

    def available_credits(self, usage: MonthlyUsage, subscription: SubscriptionStatus) -> int:
        """Credits usable right now; free accounts are capped at the free allowance."""
        if subscription.is_active:
            return usage.remaining
        return max(min(usage.remaining, self.free_credit_cap - usage.used), 0)

    async def ensure_capacity(
        self,
        user_id: str,
        subscription: SubscriptionStatus,
        count: int
    ) -> MonthlyUsage:
        """
        Reject a batch that cannot be paid for in full.

        Raises:
            CreditLimitError: fewer credits than scenes to render
        """
        usage = await self.get_monthly_usage(user_id, subscription.plan)
        available = self.available_credits(usage, subscription)
        if count > available:
            limit = usage.monthly_limit if subscription.is_active else self.free_credit_cap
            logger.info(f"User {user_id} asked for {count} scenes with {available} credits left")
            raise CreditLimitError(count, available, limit)
        return usage


class SceneCreditGuard(CreditGuard):
    """Checks and spends one credit per rendered scene for one user."""

    def __init__(self, ledger: UsageLedger, user_id: str, subscription: SubscriptionStatus):
        self.ledger = ledger
        self.user_id = user_id
        self.subscription = subscription
        self._marked_free_image = False

    async def check(self) -> None:
        usage = await self.ledger.get_monthly_usage(self.user_id, self.subscription.plan)
        if self.ledger.available_credits(usage, self.subscription) <= 0:
            limit = usage.monthly_limit if self.subscription.is_active else self.ledger.free_credit_cap
            raise CreditLimitError(1, 0, limit)

    async def record(self) -> None:
        await self.ledger.record_generation(self.user_id, self.subscription.plan)
        if not self.subscription.is_active and not self._marked_free_image:
            await self.ledger.mark_free_image_generated(self.user_id)
            self._marked_free_image = True
