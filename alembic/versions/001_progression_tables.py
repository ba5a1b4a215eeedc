"""Progression tables.

Creates users, artist_cards, releases, artist_evolution and
band_achievements with the chart-position and achievement uniqueness
constraints.

Revision ID: 001_progression_tables
Revises:
Create Date: 2026-10-19
"""

from collections.abc import Sequence

from alembic import op

revision: str = "001_progression_tables"
down_revision: str | None = None
branch_labels: str | Sequence[str] | None = None
depends_on: str | Sequence[str] | None = None


def upgrade() -> None:
    # --- Users ---
    op.execute("""
        CREATE TABLE IF NOT EXISTS users (
            id BIGSERIAL PRIMARY KEY,
            display_name VARCHAR(64),
            level VARCHAR(32) NOT NULL DEFAULT 'Fan',
            experience INTEGER NOT NULL DEFAULT 0,
            influence INTEGER NOT NULL DEFAULT 0,
            total_cards INTEGER NOT NULL DEFAULT 0,
            can_customize_artist_style BOOLEAN NOT NULL DEFAULT false,
            can_set_artist_philosophy BOOLEAN NOT NULL DEFAULT false,
            can_upload_profile_images BOOLEAN NOT NULL DEFAULT false,
            can_hardcode_parameters BOOLEAN NOT NULL DEFAULT false,
            fame INTEGER NOT NULL DEFAULT 1 CHECK (fame BETWEEN 1 AND 100),
            total_streams BIGINT NOT NULL DEFAULT 0 CHECK (total_streams >= 0),
            daily_streams INTEGER NOT NULL DEFAULT 0 CHECK (daily_streams >= 0),
            chart_position INTEGER NOT NULL DEFAULT 0 CHECK (chart_position BETWEEN 0 AND 100),
            projected_chart_position INTEGER,
            fanbase INTEGER NOT NULL DEFAULT 0 CHECK (fanbase >= 0),
            last_activity_date TIMESTAMPTZ,
            subscription_tier VARCHAR(32) NOT NULL DEFAULT 'Fan',
            subscription_price NUMERIC(10, 2) NOT NULL DEFAULT 0,
            band_generation_count INTEGER NOT NULL DEFAULT 0,
            free_band_generations INTEGER NOT NULL DEFAULT 2,
            last_band_generated TIMESTAMPTZ,
            credits INTEGER NOT NULL DEFAULT 500 CHECK (credits >= 0),
            monthly_credits INTEGER NOT NULL DEFAULT 0,
            last_credit_renewal TIMESTAMPTZ,
            total_credits_earned INTEGER NOT NULL DEFAULT 500,
            total_credits_spent INTEGER NOT NULL DEFAULT 0,
            created_at TIMESTAMPTZ NOT NULL DEFAULT NOW(),
            updated_at TIMESTAMPTZ NOT NULL DEFAULT NOW()
        )
    """)
    op.execute("""
        CREATE UNIQUE INDEX IF NOT EXISTS uq_users_chart_position
        ON users(chart_position) WHERE chart_position > 0
    """)
    op.execute("""
        CREATE INDEX IF NOT EXISTS idx_users_subscription_tier
        ON users(subscription_tier)
    """)

    # --- Artist cards ---
    op.execute("""
        CREATE TABLE IF NOT EXISTS artist_cards (
            id BIGSERIAL PRIMARY KEY,
            user_id BIGINT NOT NULL REFERENCES users(id) ON DELETE CASCADE,
            band_name VARCHAR(128) NOT NULL,
            genre VARCHAR(64),
            artist_data JSONB NOT NULL DEFAULT '{}',
            rarity VARCHAR(16) NOT NULL DEFAULT 'common',
            confidence DOUBLE PRECISION NOT NULL DEFAULT 50,
            music_quality DOUBLE PRECISION NOT NULL DEFAULT 0.5,
            physical_copies BIGINT NOT NULL DEFAULT 0,
            digital_downloads BIGINT NOT NULL DEFAULT 0,
            total_streams BIGINT NOT NULL DEFAULT 0,
            current_fame INTEGER NOT NULL DEFAULT 5,
            last_daily_update TIMESTAMPTZ,
            daily_growth_streak INTEGER NOT NULL DEFAULT 0,
            created_at TIMESTAMPTZ NOT NULL DEFAULT NOW()
        )
    """)
    op.execute("CREATE INDEX IF NOT EXISTS idx_artist_cards_user ON artist_cards(user_id)")

    # --- Releases ---
    op.execute("""
        CREATE TABLE IF NOT EXISTS releases (
            id BIGSERIAL PRIMARY KEY,
            artist_card_id BIGINT NOT NULL REFERENCES artist_cards(id) ON DELETE CASCADE,
            user_id BIGINT NOT NULL REFERENCES users(id) ON DELETE CASCADE,
            file_name VARCHAR(256),
            file_size BIGINT,
            duration DOUBLE PRECISION,
            tempo DOUBLE PRECISION,
            key VARCHAR(16),
            energy VARCHAR(16),
            genre VARCHAR(64),
            confidence DOUBLE PRECISION,
            release_title VARCHAR(256),
            release_type VARCHAR(16) NOT NULL DEFAULT 'single',
            music_quality DOUBLE PRECISION NOT NULL,
            genre_consistency DOUBLE PRECISION NOT NULL,
            release_impact INTEGER NOT NULL DEFAULT 0 CHECK (release_impact BETWEEN 0 AND 100),
            streams BIGINT NOT NULL DEFAULT 0,
            fan_reaction VARCHAR(64),
            peak_chart_position INTEGER NOT NULL DEFAULT 0,
            created_at TIMESTAMPTZ NOT NULL DEFAULT NOW()
        )
    """)
    op.execute("""
        CREATE INDEX IF NOT EXISTS idx_releases_card_created
        ON releases(artist_card_id, created_at)
    """)

    # --- Artist evolution (append-only) ---
    op.execute("""
        CREATE TABLE IF NOT EXISTS artist_evolution (
            id BIGSERIAL PRIMARY KEY,
            artist_card_id BIGINT NOT NULL REFERENCES artist_cards(id) ON DELETE CASCADE,
            release_id BIGINT NOT NULL REFERENCES releases(id) ON DELETE CASCADE,
            genre_shift JSONB,
            sound_evolution TEXT NOT NULL,
            fanbase_reaction TEXT NOT NULL,
            fame_change_from_release INTEGER NOT NULL DEFAULT 0,
            fanbase_change_from_release INTEGER NOT NULL DEFAULT 0,
            genre_mastery DOUBLE PRECISION NOT NULL,
            artistic_growth TEXT NOT NULL,
            created_at TIMESTAMPTZ NOT NULL DEFAULT NOW()
        )
    """)
    op.execute("""
        CREATE INDEX IF NOT EXISTS idx_evolution_card_created
        ON artist_evolution(artist_card_id, created_at)
    """)

    # --- Band achievements ---
    op.execute("""
        CREATE TABLE IF NOT EXISTS band_achievements (
            id BIGSERIAL PRIMARY KEY,
            artist_card_id BIGINT NOT NULL REFERENCES artist_cards(id) ON DELETE CASCADE,
            user_id BIGINT NOT NULL REFERENCES users(id) ON DELETE CASCADE,
            achievement_type VARCHAR(32) NOT NULL,
            achievement_name VARCHAR(64) NOT NULL,
            description TEXT NOT NULL,
            icon_type VARCHAR(16) NOT NULL,
            sales_required BIGINT NOT NULL,
            sales_at_achievement BIGINT NOT NULL,
            fame_boost_percent INTEGER NOT NULL,
            created_at TIMESTAMPTZ NOT NULL DEFAULT NOW(),
            CONSTRAINT uq_band_achievement_type UNIQUE (artist_card_id, achievement_type)
        )
    """)
    op.execute("""
        CREATE INDEX IF NOT EXISTS idx_band_achievements_user
        ON band_achievements(user_id)
    """)


def downgrade() -> None:
    op.execute("DROP TABLE IF EXISTS band_achievements")
    op.execute("DROP TABLE IF EXISTS artist_evolution")
    op.execute("DROP TABLE IF EXISTS releases")
    op.execute("DROP TABLE IF EXISTS artist_cards")
    op.execute("DROP TABLE IF EXISTS users")
