"""Genre consistency scoring and release impact."""

from __future__ import annotations

import math
from dataclasses import dataclass

GENRE_FAMILIES: dict[str, tuple[str, ...]] = {
    "electronic": ("electronic", "edm", "techno", "house", "ambient", "synthwave"),
    "rock": ("rock", "metal", "punk", "alternative", "indie", "grunge"),
    "pop": ("pop", "indie pop", "synth-pop", "electropop"),
    "jazz": ("jazz", "fusion", "smooth jazz", "bebop"),
    "classical": ("classical", "orchestral", "baroque", "romantic"),
    "hip_hop": ("hip-hop", "rap", "trap", "drill"),
    "folk": ("folk", "country", "bluegrass", "americana"),
}

EXACT_MATCH = (1.2, 1.2)
SAME_FAMILY = (1.0, 1.1)
DEPARTURE = (0.6, 0.8)

SAME_FAMILY_SHIFT_INTENSITY = 0.3
DEPARTURE_SHIFT_INTENSITY = 0.8

MASTERY_BONUS_THRESHOLD = 1.1
MASTERY_BONUS = 10


@dataclass(frozen=True)
class GenreShift:
    from_genre: str
    to_genre: str
    intensity: float

    def to_dict(self) -> dict[str, object]:
        return {"from": self.from_genre, "to": self.to_genre, "intensity": self.intensity}


@dataclass(frozen=True)
class GenreAnalysis:
    consistency: float
    mastery: float
    shift: GenreShift | None = None


def genre_family(genre: str) -> str | None:
    """Family name for a genre, matched case-insensitively."""
    needle = genre.strip().lower()
    for family, members in GENRE_FAMILIES.items():
        if needle in members:
            return family
    return None


def analyze_genre_consistency(established_genre: str | None, release_genre: str | None) -> GenreAnalysis:
    """Score how well a release fits the artist's established genre.

    Exact match (case-insensitive) scores highest, a genre from the same
    family is a small shift, anything else is a departure.
    """
    established = established_genre or "Unknown"
    released = release_genre or "Unknown"

    if established.strip().lower() == released.strip().lower():
        consistency, mastery = EXACT_MATCH
        return GenreAnalysis(consistency=consistency, mastery=mastery)

    family = genre_family(established)
    if family is not None and released.strip().lower() in GENRE_FAMILIES[family]:
        consistency, mastery = SAME_FAMILY
        return GenreAnalysis(
            consistency=consistency,
            mastery=mastery,
            shift=GenreShift(established, released, SAME_FAMILY_SHIFT_INTENSITY),
        )

    consistency, mastery = DEPARTURE
    return GenreAnalysis(
        consistency=consistency,
        mastery=mastery,
        shift=GenreShift(established, released, DEPARTURE_SHIFT_INTENSITY),
    )


def calculate_release_impact(music_quality: float, analysis: GenreAnalysis) -> int:
    """0-100 impact: quality points scaled by consistency, plus a mastery bonus.

    The bonus is added before the clamp, so a high-consistency release near
    the top saturates at 100.
    """
    impact = math.floor(music_quality * 100 * analysis.consistency)
    if analysis.mastery > MASTERY_BONUS_THRESHOLD:
        impact += MASTERY_BONUS
    return max(0, min(100, impact))
