"""Ranking score, release impact on user stats, and the global chart."""
