"""Creator levels by experience, and the creative permissions each unlocks.

Levels are cumulative: every level keeps the permissions of the levels
below it.
"""

from __future__ import annotations

PERMISSION_FIELDS: tuple[str, ...] = (
    "can_customize_artist_style",
    "can_set_artist_philosophy",
    "can_upload_profile_images",
    "can_hardcode_parameters",
)

LEVEL_THRESHOLDS: list[dict] = [
    {"title": "Fan", "xp_required": 0, "permissions": ()},
    {"title": "Artist", "xp_required": 100, "permissions": ()},
    {"title": "Producer", "xp_required": 500, "permissions": ()},
    {
        "title": "A&R",
        "xp_required": 2000,
        "permissions": ("can_customize_artist_style", "can_set_artist_philosophy"),
    },
    {"title": "Label Executive", "xp_required": 5000, "permissions": PERMISSION_FIELDS},
]


def compute_level(experience: int) -> dict:
    """Level title, permission flags and progress toward the next level."""
    current = LEVEL_THRESHOLDS[0]
    next_level = LEVEL_THRESHOLDS[0]
    for i, threshold in enumerate(LEVEL_THRESHOLDS):
        if experience >= threshold["xp_required"]:
            current = threshold
            next_level = LEVEL_THRESHOLDS[min(i + 1, len(LEVEL_THRESHOLDS) - 1)]

    granted = set(current["permissions"])
    return {
        "title": current["title"],
        "permissions": {field: field in granted for field in PERMISSION_FIELDS},
        "next_title": next_level["title"],
        "xp_to_next": max(0, next_level["xp_required"] - experience),
    }
