"""001 – Initial schema: enums, profiles, balances, leaves, expenses, audit.

Revision ID: 001_initial_schema
Revises:
Create Date: 2026-10-19 10:00:00.000000+00:00
"""

from alembic import op

# Revision identifiers
revision = "001_initial_schema"
down_revision = None
branch_labels = None
depends_on = None


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

ENUM_TYPES: list[tuple[str, list[str]]] = [
    ("user_role", ["employee", "manager", "hr", "admin"]),
    ("request_status", ["pending", "approved", "rejected"]),
    ("leave_type", ["annual", "sick", "personal", "unpaid"]),
    ("expense_type", ["travel", "office", "meals", "other"]),
]


def _create_enum(name: str, values: list[str]) -> None:
    vals = ", ".join(f"'{v}'" for v in values)
    op.execute(f"CREATE TYPE {name} AS ENUM ({vals})")


def _drop_enum(name: str) -> None:
    op.execute(f"DROP TYPE IF EXISTS {name}")


# ---------------------------------------------------------------------------
# UPGRADE
# ---------------------------------------------------------------------------


def upgrade() -> None:
    # ── Extensions ────────────────────────────────────────────────────────
    op.execute('CREATE EXTENSION IF NOT EXISTS "uuid-ossp"')

    # ── Enum types ────────────────────────────────────────────────────────
    for name, values in ENUM_TYPES:
        _create_enum(name, values)

    # ── 1. profiles ───────────────────────────────────────────────────────
    op.execute("""
        CREATE TABLE profiles (
            id            UUID PRIMARY KEY DEFAULT uuid_generate_v4(),
            name          VARCHAR(200) NOT NULL,
            email         VARCHAR(255) NOT NULL UNIQUE,
            password_hash VARCHAR(255) NOT NULL,
            role          user_role NOT NULL DEFAULT 'employee',
            department    VARCHAR(100),
            position      VARCHAR(100),
            avatar_url    TEXT,
            manager_id    UUID REFERENCES profiles(id),
            created_at    TIMESTAMPTZ DEFAULT NOW(),
            updated_at    TIMESTAMPTZ DEFAULT NOW()
        )
    """)
    op.execute("CREATE INDEX ix_profiles_manager_id ON profiles(manager_id)")

    # ── 2. leave_balances ─────────────────────────────────────────────────
    # One row per profile; counters never go negative.
    op.execute("""
        CREATE TABLE leave_balances (
            user_id    UUID PRIMARY KEY REFERENCES profiles(id) ON DELETE CASCADE,
            annual     INTEGER NOT NULL DEFAULT 0,
            sick       INTEGER NOT NULL DEFAULT 0,
            personal   INTEGER NOT NULL DEFAULT 0,
            updated_at TIMESTAMPTZ DEFAULT NOW(),
            CONSTRAINT ck_leave_balances_annual   CHECK (annual >= 0),
            CONSTRAINT ck_leave_balances_sick     CHECK (sick >= 0),
            CONSTRAINT ck_leave_balances_personal CHECK (personal >= 0)
        )
    """)

    # ── 3. leaves ─────────────────────────────────────────────────────────
    op.execute("""
        CREATE TABLE leaves (
            id          UUID PRIMARY KEY DEFAULT uuid_generate_v4(),
            user_id     UUID NOT NULL REFERENCES profiles(id),
            type        leave_type NOT NULL,
            start_date  DATE NOT NULL,
            end_date    DATE NOT NULL,
            reason      TEXT,
            status      request_status NOT NULL DEFAULT 'pending',
            reviewed_by UUID REFERENCES profiles(id),
            reviewed_at TIMESTAMPTZ,
            remarks     TEXT,
            created_at  TIMESTAMPTZ DEFAULT NOW()
        )
    """)
    op.execute("CREATE INDEX ix_leaves_user_id ON leaves(user_id)")
    op.execute("CREATE INDEX ix_leaves_status  ON leaves(status)")

    # ── 4. expenses ───────────────────────────────────────────────────────
    op.execute("""
        CREATE TABLE expenses (
            id           UUID PRIMARY KEY DEFAULT uuid_generate_v4(),
            user_id      UUID NOT NULL REFERENCES profiles(id),
            type         expense_type NOT NULL,
            amount       NUMERIC(12, 2) NOT NULL,
            description  TEXT,
            expense_date DATE NOT NULL,
            status       request_status NOT NULL DEFAULT 'pending',
            reviewed_by  UUID REFERENCES profiles(id),
            reviewed_at  TIMESTAMPTZ,
            remarks      TEXT,
            created_at   TIMESTAMPTZ DEFAULT NOW(),
            CONSTRAINT ck_expenses_amount_positive CHECK (amount > 0)
        )
    """)
    op.execute("CREATE INDEX ix_expenses_user_id ON expenses(user_id)")
    op.execute("CREATE INDEX ix_expenses_status  ON expenses(status)")

    # ── 5. audit_trail ────────────────────────────────────────────────────
    op.execute("""
        CREATE TABLE audit_trail (
            id          UUID PRIMARY KEY DEFAULT uuid_generate_v4(),
            actor_id    UUID REFERENCES profiles(id),
            action      VARCHAR(50) NOT NULL,
            entity_type VARCHAR(50) NOT NULL,
            entity_id   UUID NOT NULL,
            old_values  JSONB,
            new_values  JSONB,
            ip_address  INET,
            user_agent  TEXT,
            created_at  TIMESTAMPTZ NOT NULL DEFAULT NOW()
        )
    """)
    op.execute("CREATE INDEX ix_audit_trail_entity   ON audit_trail(entity_type, entity_id)")
    op.execute("CREATE INDEX ix_audit_trail_actor_id ON audit_trail(actor_id)")


# ---------------------------------------------------------------------------
# DOWNGRADE
# ---------------------------------------------------------------------------


def downgrade() -> None:
    # Drop tables in reverse dependency order
    tables = [
        "audit_trail",
        "expenses",
        "leaves",
        "leave_balances",
        "profiles",
    ]
    for t in tables:
        op.execute(f"DROP TABLE IF EXISTS {t} CASCADE")

    for name, _ in reversed(ENUM_TYPES):
        _drop_enum(name)
