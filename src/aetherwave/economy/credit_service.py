"""Credit balance changes and the band-generation allowance.

Every balance change is a single conditional UPDATE so concurrent requests
for the same user can never spend past zero.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Literal

import structlog
from sqlalchemy import update
from sqlalchemy.ext.asyncio import AsyncSession

from aetherwave.config import get_settings
from aetherwave.db.models import User
from aetherwave.economy.tiers import MOGUL
from aetherwave.errors import UserNotFoundError

logger = structlog.get_logger()


# ---------------------------------------------------------------------------
# Credits
# ---------------------------------------------------------------------------


async def _require_user(db: AsyncSession, user_id: int) -> User:
    user = await db.get(User, user_id, populate_existing=True)
    if user is None:
        raise UserNotFoundError(user_id)
    return user


async def spend_credits(db: AsyncSession, user_id: int, amount: int) -> bool:
    """Deduct ``amount`` credits if the balance covers it.

    Returns False (and changes nothing) when the balance is short. The caller
    commits.
    """
    if amount <= 0:
        msg = f"Spend amount must be positive, got {amount}"
        raise ValueError(msg)

    result = await db.execute(
        update(User)
        .where(User.id == user_id, User.credits >= amount)
        .values(
            credits=User.credits - amount,
            total_credits_spent=User.total_credits_spent + amount,
        )
        .execution_options(synchronize_session=False)
    )
    if result.rowcount == 1:
        await _require_user(db, user_id)
        logger.info("credits_spent", user_id=user_id, amount=amount)
        return True

    user = await _require_user(db, user_id)
    logger.info("credits_insufficient", user_id=user_id, amount=amount, balance=user.credits)
    return False


async def add_credits(db: AsyncSession, user_id: int, amount: int) -> User:
    """Grant credits; counts toward lifetime credits earned. The caller commits."""
    if amount <= 0:
        msg = f"Credit amount must be positive, got {amount}"
        raise ValueError(msg)

    result = await db.execute(
        update(User)
        .where(User.id == user_id)
        .values(
            credits=User.credits + amount,
            total_credits_earned=User.total_credits_earned + amount,
        )
        .execution_options(synchronize_session=False)
    )
    if result.rowcount == 0:
        raise UserNotFoundError(user_id)
    logger.info("credits_added", user_id=user_id, amount=amount)
    return await _require_user(db, user_id)


# ---------------------------------------------------------------------------
# Band generation allowance
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class GenerationAllowed:
    via: Literal["unlimited", "free", "credits"]
    cost: int = 0


@dataclass(frozen=True)
class GenerationDenied:
    reason: str
    cost: int
    credits: int


GenerationAllowance = GenerationAllowed | GenerationDenied


def evaluate_band_generation(user: User, cost: int) -> GenerationAllowance:
    """Which way (if any) the user may pay for their next band."""
    if user.subscription_tier == MOGUL:
        return GenerationAllowed(via="unlimited")
    if user.free_band_generations > 0:
        return GenerationAllowed(via="free")
    if user.credits >= cost:
        return GenerationAllowed(via="credits", cost=cost)
    return GenerationDenied(
        reason=f"Need {cost} credits for an additional band generation",
        cost=cost,
        credits=user.credits,
    )


async def check_band_generation(db: AsyncSession, user_id: int) -> GenerationAllowance:
    settings = get_settings()
    user = await _require_user(db, user_id)
    return evaluate_band_generation(user, settings.additional_band_cost)


async def consume_band_generation(
    db: AsyncSession,
    user_id: int,
    now: datetime | None = None,
) -> GenerationAllowance:
    """Pay for one band generation.

    Free generations are decremented with a conditional UPDATE; otherwise
    credits are spent. If a concurrent request used up the free allowance
    first, this falls through to credits. The caller commits.
    """
    settings = get_settings()
    now = now or datetime.now(timezone.utc)
    user = await _require_user(db, user_id)
    allowance = evaluate_band_generation(user, settings.additional_band_cost)

    if isinstance(allowance, GenerationAllowed) and allowance.via == "free":
        result = await db.execute(
            update(User)
            .where(User.id == user_id, User.free_band_generations > 0)
            .values(free_band_generations=User.free_band_generations - 1)
            .execution_options(synchronize_session=False)
        )
        if result.rowcount == 0:
            allowance = evaluate_band_generation(
                await _require_user(db, user_id), settings.additional_band_cost
            )

    if isinstance(allowance, GenerationAllowed) and allowance.via == "credits":
        if not await spend_credits(db, user_id, allowance.cost):
            user = await _require_user(db, user_id)
            allowance = GenerationDenied(
                reason=f"Need {allowance.cost} credits for an additional band generation",
                cost=allowance.cost,
                credits=user.credits,
            )

    if isinstance(allowance, GenerationDenied):
        logger.info("band_generation_denied", user_id=user_id, credits=allowance.credits)
        return allowance

    await db.execute(
        update(User)
        .where(User.id == user_id)
        .values(band_generation_count=User.band_generation_count + 1, last_band_generated=now)
        .execution_options(synchronize_session=False)
    )
    await _require_user(db, user_id)
    logger.info("band_generation_consumed", user_id=user_id, via=allowance.via, cost=allowance.cost)
    return allowance
