"""ORM models for progression state.

Accounts are created by the account service; this service owns the
progression, economy and chart columns on ``users`` plus the artist card,
release, evolution and achievement tables.
"""

from __future__ import annotations

from datetime import datetime, timezone
from decimal import Decimal
from typing import Any

from sqlalchemy import (
    BigInteger,
    Boolean,
    DateTime,
    Float,
    ForeignKey,
    Index,
    Integer,
    Numeric,
    String,
    Text,
    UniqueConstraint,
    func,
    text,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from aetherwave.db.base import Base, BigIntPK, JSONType


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


# ---------------------------------------------------------------------------
# Users
# ---------------------------------------------------------------------------


class User(Base):
    """Maps to the 'users' table: one progression record per account."""

    __tablename__ = "users"
    __table_args__ = (
        # Ranked positions are unique; 0 means unranked.
        Index(
            "uq_users_chart_position",
            "chart_position",
            unique=True,
            postgresql_where=text("chart_position > 0"),
            sqlite_where=text("chart_position > 0"),
        ),
        Index("idx_users_subscription_tier", "subscription_tier"),
    )

    id: Mapped[int] = mapped_column(BigIntPK, primary_key=True, autoincrement=True)
    display_name: Mapped[str | None] = mapped_column(String(64), nullable=True)

    # --- Creator progression ---
    level: Mapped[str] = mapped_column(String(32), default="Fan", server_default="Fan")
    experience: Mapped[int] = mapped_column(Integer, default=0, server_default="0")
    influence: Mapped[int] = mapped_column(Integer, default=0, server_default="0")
    total_cards: Mapped[int] = mapped_column(Integer, default=0, server_default="0")
    can_customize_artist_style: Mapped[bool] = mapped_column(Boolean, default=False, server_default="false")
    can_set_artist_philosophy: Mapped[bool] = mapped_column(Boolean, default=False, server_default="false")
    can_upload_profile_images: Mapped[bool] = mapped_column(Boolean, default=False, server_default="false")
    can_hardcode_parameters: Mapped[bool] = mapped_column(Boolean, default=False, server_default="false")

    # --- Chart stats ---
    fame: Mapped[int] = mapped_column(Integer, default=1, server_default="1")
    total_streams: Mapped[int] = mapped_column(BigInteger, default=0, server_default="0")
    daily_streams: Mapped[int] = mapped_column(Integer, default=0, server_default="0")
    chart_position: Mapped[int] = mapped_column(Integer, default=0, server_default="0")
    projected_chart_position: Mapped[int | None] = mapped_column(Integer, nullable=True)
    fanbase: Mapped[int] = mapped_column(Integer, default=0, server_default="0")
    last_activity_date: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)

    # --- Subscription / band generation ---
    subscription_tier: Mapped[str] = mapped_column(String(32), default="Fan", server_default="Fan")
    subscription_price: Mapped[Decimal] = mapped_column(Numeric(10, 2), default=Decimal("0"), server_default="0")
    band_generation_count: Mapped[int] = mapped_column(Integer, default=0, server_default="0")
    free_band_generations: Mapped[int] = mapped_column(Integer, default=2, server_default="2")
    last_band_generated: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)

    # --- Credits ---
    credits: Mapped[int] = mapped_column(Integer, default=500, server_default="500")
    monthly_credits: Mapped[int] = mapped_column(Integer, default=0, server_default="0")
    last_credit_renewal: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    total_credits_earned: Mapped[int] = mapped_column(Integer, default=500, server_default="500")
    total_credits_spent: Mapped[int] = mapped_column(Integer, default=0, server_default="0")

    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=_utcnow, server_default=func.now())
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=_utcnow, onupdate=_utcnow, server_default=func.now()
    )

    # --- Relationships ---
    artist_cards: Mapped[list[ArtistCard]] = relationship("ArtistCard", back_populates="user")


# ---------------------------------------------------------------------------
# Artist cards
# ---------------------------------------------------------------------------


class ArtistCard(Base):
    """A virtual band owned by a user. Persona text lives in ``artist_data``."""

    __tablename__ = "artist_cards"
    __table_args__ = (Index("idx_artist_cards_user", "user_id"),)

    id: Mapped[int] = mapped_column(BigIntPK, primary_key=True, autoincrement=True)
    user_id: Mapped[int] = mapped_column(BigInteger, ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    band_name: Mapped[str] = mapped_column(String(128), nullable=False)
    genre: Mapped[str | None] = mapped_column(String(64), nullable=True)
    artist_data: Mapped[dict[str, Any]] = mapped_column(JSONType, default=dict)
    rarity: Mapped[str] = mapped_column(String(16), default="common", server_default="common")
    confidence: Mapped[float] = mapped_column(Float, default=50.0, server_default="50")  # percent
    music_quality: Mapped[float] = mapped_column(Float, default=0.5, server_default="0.5")

    # --- Sales ---
    physical_copies: Mapped[int] = mapped_column(BigInteger, default=0, server_default="0")
    digital_downloads: Mapped[int] = mapped_column(BigInteger, default=0, server_default="0")
    total_streams: Mapped[int] = mapped_column(BigInteger, default=0, server_default="0")
    current_fame: Mapped[int] = mapped_column(Integer, default=5, server_default="5")
    last_daily_update: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    daily_growth_streak: Mapped[int] = mapped_column(Integer, default=0, server_default="0")

    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=_utcnow, server_default=func.now())

    user: Mapped[User] = relationship("User", back_populates="artist_cards")

    @property
    def total_sales(self) -> int:
        """Physical + digital + streams."""
        return self.physical_copies + self.digital_downloads + self.total_streams


# ---------------------------------------------------------------------------
# Releases and evolution
# ---------------------------------------------------------------------------


class Release(Base):
    """A track, EP or album released by an artist card."""

    __tablename__ = "releases"
    __table_args__ = (Index("idx_releases_card_created", "artist_card_id", "created_at"),)

    id: Mapped[int] = mapped_column(BigIntPK, primary_key=True, autoincrement=True)
    artist_card_id: Mapped[int] = mapped_column(
        BigInteger, ForeignKey("artist_cards.id", ondelete="CASCADE"), nullable=False
    )
    user_id: Mapped[int] = mapped_column(BigInteger, ForeignKey("users.id", ondelete="CASCADE"), nullable=False)

    # --- Upload metadata (from the audio analysis service) ---
    file_name: Mapped[str | None] = mapped_column(String(256), nullable=True)
    file_size: Mapped[int | None] = mapped_column(BigInteger, nullable=True)
    duration: Mapped[float | None] = mapped_column(Float, nullable=True)
    tempo: Mapped[float | None] = mapped_column(Float, nullable=True)
    key: Mapped[str | None] = mapped_column(String(16), nullable=True)
    energy: Mapped[str | None] = mapped_column(String(16), nullable=True)
    genre: Mapped[str | None] = mapped_column(String(64), nullable=True)
    confidence: Mapped[float | None] = mapped_column(Float, nullable=True)

    release_title: Mapped[str | None] = mapped_column(String(256), nullable=True)
    release_type: Mapped[str] = mapped_column(String(16), default="single", server_default="single")
    music_quality: Mapped[float] = mapped_column(Float, nullable=False)
    genre_consistency: Mapped[float] = mapped_column(Float, nullable=False)
    release_impact: Mapped[int] = mapped_column(Integer, default=0, server_default="0")
    streams: Mapped[int] = mapped_column(BigInteger, default=0, server_default="0")
    fan_reaction: Mapped[str | None] = mapped_column(String(64), nullable=True)
    peak_chart_position: Mapped[int] = mapped_column(Integer, default=0, server_default="0")

    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=_utcnow, server_default=func.now())


class ArtistEvolution(Base):
    """Append-only narrative record written for every release."""

    __tablename__ = "artist_evolution"
    __table_args__ = (Index("idx_evolution_card_created", "artist_card_id", "created_at"),)

    id: Mapped[int] = mapped_column(BigIntPK, primary_key=True, autoincrement=True)
    artist_card_id: Mapped[int] = mapped_column(
        BigInteger, ForeignKey("artist_cards.id", ondelete="CASCADE"), nullable=False
    )
    release_id: Mapped[int] = mapped_column(BigInteger, ForeignKey("releases.id", ondelete="CASCADE"), nullable=False)
    genre_shift: Mapped[dict[str, Any] | None] = mapped_column(JSONType, nullable=True)
    sound_evolution: Mapped[str] = mapped_column(Text, nullable=False)
    fanbase_reaction: Mapped[str] = mapped_column(Text, nullable=False)
    fame_change_from_release: Mapped[int] = mapped_column(Integer, default=0, server_default="0")
    fanbase_change_from_release: Mapped[int] = mapped_column(Integer, default=0, server_default="0")
    genre_mastery: Mapped[float] = mapped_column(Float, nullable=False)
    artistic_growth: Mapped[str] = mapped_column(Text, nullable=False)

    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=_utcnow, server_default=func.now())


# ---------------------------------------------------------------------------
# Achievements
# ---------------------------------------------------------------------------


class BandAchievement(Base):
    """A sales milestone reached by an artist card. Awarded at most once per type."""

    __tablename__ = "band_achievements"
    __table_args__ = (
        UniqueConstraint("artist_card_id", "achievement_type", name="uq_band_achievement_type"),
        Index("idx_band_achievements_user", "user_id"),
    )

    id: Mapped[int] = mapped_column(BigIntPK, primary_key=True, autoincrement=True)
    artist_card_id: Mapped[int] = mapped_column(
        BigInteger, ForeignKey("artist_cards.id", ondelete="CASCADE"), nullable=False
    )
    user_id: Mapped[int] = mapped_column(BigInteger, ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    achievement_type: Mapped[str] = mapped_column(String(32), nullable=False)
    achievement_name: Mapped[str] = mapped_column(String(64), nullable=False)
    description: Mapped[str] = mapped_column(Text, nullable=False)
    icon_type: Mapped[str] = mapped_column(String(16), nullable=False)
    sales_required: Mapped[int] = mapped_column(BigInteger, nullable=False)
    sales_at_achievement: Mapped[int] = mapped_column(BigInteger, nullable=False)
    fame_boost_percent: Mapped[int] = mapped_column(Integer, nullable=False)

    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=_utcnow, server_default=func.now())
