"""Initial schema — profiles, skills, availability, cohorts, referrals.

Revision ID: 001_initial_schema
Revises: None
Create Date: 2026-10-19
"""

from collections.abc import Sequence

from alembic import op

revision: str = "001_initial_schema"
down_revision: str | None = None
branch_labels: str | Sequence[str] | None = None
depends_on: str | Sequence[str] | None = None


def upgrade() -> None:
    # --- Users ---
    op.execute("""
        CREATE TABLE IF NOT EXISTS users (
            id VARCHAR(64) PRIMARY KEY,
            handle VARCHAR(30) UNIQUE NOT NULL,
            full_name VARCHAR(100) NOT NULL,
            bio VARCHAR(500),
            avatar_url TEXT,
            timezone VARCHAR(64) NOT NULL DEFAULT 'UTC',
            languages JSONB NOT NULL DEFAULT '[]'::jsonb,
            location_city VARCHAR(100),
            location_country VARCHAR(100),
            created_at TIMESTAMPTZ NOT NULL DEFAULT NOW()
        )
    """)

    op.execute("""
        CREATE TABLE IF NOT EXISTS skills (
            id VARCHAR(36) PRIMARY KEY,
            user_id VARCHAR(64) NOT NULL REFERENCES users(id) ON DELETE CASCADE,
            kind VARCHAR(8) NOT NULL CHECK (kind IN ('teach', 'learn')),
            tags JSONB NOT NULL DEFAULT '[]'::jsonb,
            level VARCHAR(16),
            notes VARCHAR(500),
            created_at TIMESTAMPTZ NOT NULL DEFAULT NOW()
        )
    """)
    op.execute("CREATE INDEX IF NOT EXISTS idx_skills_user ON skills(user_id)")

    # --- Availability (one 168-slot mask per user) ---
    op.execute("""
        CREATE TABLE IF NOT EXISTS availability (
            user_id VARCHAR(64) PRIMARY KEY REFERENCES users(id) ON DELETE CASCADE,
            week_mask JSONB NOT NULL CHECK (jsonb_array_length(week_mask) = 168),
            updated_at TIMESTAMPTZ NOT NULL DEFAULT NOW()
        )
    """)

    # --- Connections ---
    op.execute("""
        CREATE TABLE IF NOT EXISTS connections (
            id VARCHAR(36) PRIMARY KEY,
            requester_id VARCHAR(64) NOT NULL REFERENCES users(id) ON DELETE CASCADE,
            addressee_id VARCHAR(64) NOT NULL REFERENCES users(id) ON DELETE CASCADE,
            status VARCHAR(16) NOT NULL DEFAULT 'pending',
            created_at TIMESTAMPTZ NOT NULL DEFAULT NOW(),
            CONSTRAINT uq_connections_pair UNIQUE (requester_id, addressee_id)
        )
    """)

    # --- Cohorts ---
    op.execute("""
        CREATE TABLE IF NOT EXISTS cohorts (
            id VARCHAR(36) PRIMARY KEY,
            title VARCHAR(100) NOT NULL,
            owner_id VARCHAR(64) NOT NULL REFERENCES users(id) ON DELETE CASCADE,
            size INTEGER NOT NULL DEFAULT 2,
            start_date TIMESTAMPTZ NOT NULL,
            weeks INTEGER NOT NULL DEFAULT 6,
            visibility VARCHAR(16) NOT NULL DEFAULT 'private',
            city VARCHAR(100),
            created_at TIMESTAMPTZ NOT NULL DEFAULT NOW()
        )
    """)

    op.execute("""
        CREATE TABLE IF NOT EXISTS cohort_members (
            cohort_id VARCHAR(36) NOT NULL REFERENCES cohorts(id) ON DELETE CASCADE,
            user_id VARCHAR(64) NOT NULL REFERENCES users(id) ON DELETE CASCADE,
            role VARCHAR(16) NOT NULL DEFAULT 'learner',
            joined_at TIMESTAMPTZ NOT NULL DEFAULT NOW(),
            PRIMARY KEY (cohort_id, user_id)
        )
    """)

    op.execute("""
        CREATE TABLE IF NOT EXISTS sessions (
            id VARCHAR(36) PRIMARY KEY,
            cohort_id VARCHAR(36) NOT NULL REFERENCES cohorts(id) ON DELETE CASCADE,
            week_index INTEGER NOT NULL,
            starts_at TIMESTAMPTZ NOT NULL,
            duration_minutes INTEGER NOT NULL DEFAULT 60,
            notes_url TEXT,
            attendee_count INTEGER NOT NULL DEFAULT 0
        )
    """)
    op.execute("CREATE INDEX IF NOT EXISTS idx_sessions_cohort_starts ON sessions(cohort_id, starts_at)")

    op.execute("""
        CREATE TABLE IF NOT EXISTS messages (
            id VARCHAR(36) PRIMARY KEY,
            cohort_id VARCHAR(36) NOT NULL REFERENCES cohorts(id) ON DELETE CASCADE,
            user_id VARCHAR(64) NOT NULL REFERENCES users(id) ON DELETE CASCADE,
            body VARCHAR(2000) NOT NULL,
            created_at TIMESTAMPTZ NOT NULL DEFAULT NOW()
        )
    """)
    op.execute("CREATE INDEX IF NOT EXISTS idx_messages_cohort_created ON messages(cohort_id, created_at)")

    op.execute("""
        CREATE TABLE IF NOT EXISTS artifacts (
            id VARCHAR(36) PRIMARY KEY,
            cohort_id VARCHAR(36) NOT NULL REFERENCES cohorts(id) ON DELETE CASCADE,
            url TEXT NOT NULL,
            kind VARCHAR(16) NOT NULL,
            created_at TIMESTAMPTZ NOT NULL DEFAULT NOW()
        )
    """)

    op.execute("""
        CREATE TABLE IF NOT EXISTS feedback (
            id VARCHAR(36) PRIMARY KEY,
            cohort_id VARCHAR(36) NOT NULL REFERENCES cohorts(id) ON DELETE CASCADE,
            from_user_id VARCHAR(64) NOT NULL REFERENCES users(id) ON DELETE CASCADE,
            to_user_id VARCHAR(64) NOT NULL REFERENCES users(id) ON DELETE CASCADE,
            rating INTEGER NOT NULL CHECK (rating BETWEEN 1 AND 5),
            text VARCHAR(1000),
            created_at TIMESTAMPTZ NOT NULL DEFAULT NOW()
        )
    """)

    # --- Endorsements & referrals ---
    op.execute("""
        CREATE TABLE IF NOT EXISTS endorsements (
            id VARCHAR(36) PRIMARY KEY,
            endorser_id VARCHAR(64) NOT NULL REFERENCES users(id) ON DELETE CASCADE,
            endorsee_id VARCHAR(64) NOT NULL REFERENCES users(id) ON DELETE CASCADE,
            tag VARCHAR(50) NOT NULL,
            created_at TIMESTAMPTZ NOT NULL DEFAULT NOW(),
            CONSTRAINT uq_endorsements_tag UNIQUE (endorser_id, endorsee_id, tag)
        )
    """)

    op.execute("""
        CREATE TABLE IF NOT EXISTS referrals (
            id VARCHAR(36) PRIMARY KEY,
            from_user_id VARCHAR(64) NOT NULL REFERENCES users(id) ON DELETE CASCADE,
            to_user_id VARCHAR(64) NOT NULL REFERENCES users(id) ON DELETE CASCADE,
            cohort_id VARCHAR(36) NOT NULL REFERENCES cohorts(id) ON DELETE CASCADE,
            context VARCHAR(500) NOT NULL,
            status VARCHAR(16) NOT NULL DEFAULT 'draft',
            created_at TIMESTAMPTZ NOT NULL DEFAULT NOW()
        )
    """)

    # --- Notifications ---
    op.execute("""
        CREATE TABLE IF NOT EXISTS notifications (
            id VARCHAR(36) PRIMARY KEY,
            user_id VARCHAR(64) NOT NULL REFERENCES users(id) ON DELETE CASCADE,
            kind VARCHAR(32) NOT NULL,
            payload JSONB NOT NULL DEFAULT '{}'::jsonb,
            read_at TIMESTAMPTZ,
            created_at TIMESTAMPTZ NOT NULL DEFAULT NOW()
        )
    """)
    op.execute(
        "CREATE INDEX IF NOT EXISTS idx_notifications_user_created ON notifications(user_id, created_at DESC)"
    )


def downgrade() -> None:
    for table in [
        "notifications",
        "referrals",
        "endorsements",
        "feedback",
        "artifacts",
        "messages",
        "sessions",
        "cohort_members",
        "cohorts",
        "connections",
        "availability",
        "skills",
        "users",
    ]:
        op.execute(f"DROP TABLE IF EXISTS {table} CASCADE")  # noqa: S608
