"""Composite ranking score used to order the global chart."""

from __future__ import annotations

from typing import Protocol

# Weights per stat
FAME_WEIGHT = 1000
TOTAL_STREAMS_WEIGHT = 0.01
DAILY_STREAMS_WEIGHT = 1
FANBASE_WEIGHT = 10


class ChartStats(Protocol):
    fame: int
    total_streams: int
    daily_streams: int
    fanbase: int


def ranking_score(stats: ChartStats) -> float:
    """Score = fame*1000 + totalStreams*0.01 + dailyStreams + fanbase*10.

    Monotone non-decreasing in every input.
    """
    return (
        stats.fame * FAME_WEIGHT
        + stats.total_streams * TOTAL_STREAMS_WEIGHT
        + stats.daily_streams * DAILY_STREAMS_WEIGHT
        + stats.fanbase * FANBASE_WEIGHT
    )


def is_active(stats: ChartStats) -> bool:
    """A user is chart-eligible once they have any activity beyond the defaults."""
    return stats.fame > 1 or stats.total_streams > 0 or stats.fanbase > 0


def chart_sort_key(user_id: int, stats: ChartStats) -> tuple[float, int]:
    """Sort key: highest score first, lower user id wins ties."""
    return (-ranking_score(stats), user_id)
