"""User-level career milestones reported alongside chart stats.

These are derived on read from the current stats and carry no state of
their own. Card sales achievements live in aetherwave.achievements.
"""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass

from aetherwave.db.models import User


@dataclass(frozen=True)
class Milestone:
    id: str
    name: str
    description: str
    fame_reward: int
    unlocks: str | None = None


def _ranked_within(user: User, limit: int) -> bool:
    return 0 < user.chart_position <= limit


_MILESTONES: list[tuple[Milestone, Callable[[User], bool]]] = [
    (
        Milestone("first_upload", "First Upload", "Created your first artist card", 5),
        lambda u: u.total_cards >= 1,
    ),
    (
        Milestone("rising_star", "Rising Star", "Reached 1,000 total streams", 10),
        lambda u: u.total_streams >= 1000,
    ),
    (
        Milestone("chart_debut", "Chart Debut", "Entered the Top 100 charts", 15),
        lambda u: _ranked_within(u, 100),
    ),
    (
        Milestone("viral_hit", "Viral Hit", "10,000+ daily streams", 20),
        lambda u: u.daily_streams >= 10000,
    ),
    (
        Milestone("top_40", "Top 40", "Reached the Top 40", 25),
        lambda u: _ranked_within(u, 40),
    ),
    (
        Milestone("fanbase_1k", "Growing Fanbase", "Reached 1,000 fans", 8),
        lambda u: u.fanbase >= 1000,
    ),
    (
        Milestone("fanbase_10k", "Dedicated Following", "Reached 10,000 fans", 15),
        lambda u: u.fanbase >= 10000,
    ),
    (
        Milestone("top_10", "Top 10 Hit", "Reached the Top 10", 30),
        lambda u: _ranked_within(u, 10),
    ),
    (
        Milestone("superstar", "Superstar", "Reached 80+ FAME", 0, unlocks="Label Executive Level"),
        lambda u: u.fame >= 80,
    ),
    (
        Milestone("legend", "Music Legend", "Reached maximum FAME", 0, unlocks="Hall of Fame Status"),
        lambda u: u.fame >= 100,
    ),
]


def check_milestones(user: User) -> list[Milestone]:
    """Return every milestone the user's current stats satisfy, in table order."""
    return [milestone for milestone, reached in _MILESTONES if reached(user)]
