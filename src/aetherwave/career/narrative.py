"""Narrative text for artist evolution records and release summaries.

All text is derived deterministically from the genre analysis and the
ranking update, so the same release always reads the same way.
"""

from __future__ import annotations

from dataclasses import dataclass

from aetherwave.career.genre_analysis import GenreAnalysis
from aetherwave.ranking.ranking_engine import RankingUpdate

DRAMATIC_SHIFT = 0.7
MODERATE_SHIFT = 0.3
BREAKTHROUGH_SHIFT = 0.8


@dataclass(frozen=True)
class EvolutionNarrative:
    sound_evolution: str
    fanbase_reaction: str
    artistic_growth: str


def describe_evolution(
    analysis: GenreAnalysis,
    ranking_update: RankingUpdate,
    established_genre: str | None,
) -> EvolutionNarrative:
    shift = analysis.shift
    if shift is not None and shift.intensity > DRAMATIC_SHIFT:
        if ranking_update.fame_change > 0:
            reaction = "Mixed reactions but ultimately praised for creative risk-taking"
        else:
            reaction = "Fans divided on the new direction, some calling it experimental"
        return EvolutionNarrative(
            sound_evolution=f"Dramatic shift from {shift.from_genre} to {shift.to_genre} - a bold artistic pivot",
            fanbase_reaction=reaction,
            artistic_growth="Creative breakthrough" if shift.intensity > BREAKTHROUGH_SHIFT else "Artistic exploration",
        )

    if shift is not None and shift.intensity >= MODERATE_SHIFT:
        return EvolutionNarrative(
            sound_evolution=f"Subtle evolution incorporating {shift.to_genre} elements into core {shift.from_genre} sound",
            fanbase_reaction="Fans appreciate the musical growth while staying true to roots",
            artistic_growth="Measured artistic development",
        )

    genre = established_genre or "their sound"
    return EvolutionNarrative(
        sound_evolution=f"Refined mastery of {genre} showcasing technical growth",
        fanbase_reaction="Core fanbase celebrates the consistent quality and style",
        artistic_growth="Genre mastery progression",
    )


def _ordinal_phrase(release_count: int, release_type: str) -> str:
    if release_count == 1:
        return f" - their debut {release_type}! "
    if release_count == 2:
        return " - their sophomore release. "
    if release_count == 3:
        return " - their third release. "
    return f" - their latest {release_type} (#{release_count} in their catalog). "


def build_career_summary(
    band_name: str,
    genre: str | None,
    release_title: str | None,
    release_type: str,
    release_count: int,
    ranking_update: RankingUpdate,
    narrative: EvolutionNarrative,
) -> str:
    """One-paragraph summary of a release and what it did for the band."""
    summary = f'**{band_name}** has released "{release_title or "New Track"}"'
    summary += _ordinal_phrase(release_count, release_type)
    summary += f"This release shows {narrative.sound_evolution.lower()}. "
    summary += f"{narrative.fanbase_reaction}. "

    if ranking_update.fame_change > 0:
        summary += f"The release boosted their FAME by {ranking_update.fame_change} points"
        if ranking_update.fanbase_change > 0:
            summary += f" and gained {ranking_update.fanbase_change:,} new fans"
        summary += ". "
    elif ranking_update.fame_change < 0:
        summary += (
            f"The release was met with mixed reception, resulting in "
            f"{abs(ranking_update.fame_change)} FAME decline. "
        )

    if ranking_update.chart_position_change < 0:
        summary += f"Chart momentum: Rising {abs(ranking_update.chart_position_change)} positions! "

    summary += f"**{band_name}** continues to evolve their {genre or 'signature'} sound"
    summary += f" through {narrative.artistic_growth.lower()}."
    return summary
