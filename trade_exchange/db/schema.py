"""
SQL DDL statements for all application tables.

Relations between tables are enforced by the service layer, not by foreign
keys, so the same records can live in the in-memory backend unchanged.

Migration helpers run ALTER TABLE only when a column does not yet exist,
making them safe to call on every startup (idempotent). Migrations are
additive only: columns are never dropped or renamed.
"""
import sqlite3

# ---------------------------------------------------------------------------
# DDL
# ---------------------------------------------------------------------------

CREATE_USERS_TABLE = """
CREATE TABLE IF NOT EXISTS users (
    id              TEXT    PRIMARY KEY,
    name            TEXT    NOT NULL,
    email           TEXT    NOT NULL,
    password_hash   TEXT    NOT NULL,
    role            TEXT    NOT NULL DEFAULT 'USER'
                            CHECK(role IN ('USER', 'TRADER', 'ADMIN')),
    provider_id     TEXT,
    created_at      TEXT    NOT NULL
);
"""

CREATE_PROVIDERS_TABLE = """
CREATE TABLE IF NOT EXISTS providers (
    id              TEXT    PRIMARY KEY,
    name            TEXT    NOT NULL,
    role            TEXT    NOT NULL DEFAULT 'PROVIDER',
    rating          REAL    NOT NULL DEFAULT 5.0,
    completed_jobs  INTEGER NOT NULL DEFAULT 0,
    bio             TEXT    NOT NULL DEFAULT '',
    location        TEXT    NOT NULL DEFAULT '',
    created_at      TEXT    NOT NULL,
    updated_at      TEXT    NOT NULL
);
"""

CREATE_LISTINGS_TABLE = """
CREATE TABLE IF NOT EXISTS listings (
    id              TEXT    PRIMARY KEY,
    title           TEXT    NOT NULL,
    description     TEXT    NOT NULL DEFAULT '',
    price           REAL    NOT NULL DEFAULT 0.0,
    provider_id     TEXT    NOT NULL,
    status          TEXT    NOT NULL DEFAULT 'LISTED'
                            CHECK(status IN ('DRAFT', 'LISTED')),
    tags            TEXT    NOT NULL DEFAULT '',
    created_at      TEXT    NOT NULL,
    updated_at      TEXT    NOT NULL,
    version         INTEGER NOT NULL DEFAULT 1
);
"""

CREATE_INTERACTIONS_TABLE = """
CREATE TABLE IF NOT EXISTS interactions (
    id              TEXT    PRIMARY KEY,
    user_id         TEXT    NOT NULL,
    provider_id     TEXT    NOT NULL,
    listing_id      TEXT,
    at              TEXT    NOT NULL,
    note            TEXT    NOT NULL DEFAULT ''
);
"""

CREATE_ORDERS_TABLE = """
CREATE TABLE IF NOT EXISTS orders (
    id              TEXT    PRIMARY KEY,
    customer_id     TEXT    NOT NULL,
    customer_name   TEXT    NOT NULL DEFAULT 'Customer',
    provider_id     TEXT    NOT NULL,
    listing_id      TEXT,
    service         TEXT    NOT NULL DEFAULT 'Service request',
    status          TEXT    NOT NULL DEFAULT 'discuss'
                            CHECK(status IN ('discuss', 'approved', 'denied',
                                             'refunded', 'exchange', 'complete')),
    amount          REAL    NOT NULL DEFAULT 0.0,
    conversation_id TEXT,
    details         TEXT    NOT NULL DEFAULT '',
    req_date        TEXT    NOT NULL DEFAULT '',
    req_time        TEXT    NOT NULL DEFAULT '',
    ack             INTEGER NOT NULL DEFAULT 0,
    created_at      TEXT    NOT NULL,
    version         INTEGER NOT NULL DEFAULT 1
);
"""

CREATE_CONVERSATIONS_TABLE = """
CREATE TABLE IF NOT EXISTS conversations (
    id              TEXT    PRIMARY KEY,
    kind            TEXT    NOT NULL DEFAULT 'CHAT',
    title           TEXT    NOT NULL DEFAULT '',
    participant_key TEXT    NOT NULL,
    last_message    TEXT    NOT NULL DEFAULT '',
    created_at      TEXT    NOT NULL
);
"""

CREATE_CONVERSATION_MEMBERS_TABLE = """
CREATE TABLE IF NOT EXISTS conversation_members (
    id              TEXT    PRIMARY KEY,
    conversation_id TEXT    NOT NULL,
    user_id         TEXT    NOT NULL
);
"""

CREATE_MESSAGES_TABLE = """
CREATE TABLE IF NOT EXISTS messages (
    id              TEXT    PRIMARY KEY,
    conversation_id TEXT    NOT NULL,
    user_id         TEXT,
    role            TEXT    NOT NULL CHECK(role IN ('user', 'assistant')),
    content         TEXT    NOT NULL,
    created_at      TEXT    NOT NULL
);
"""

CREATE_FAVORITES_TABLE = """
CREATE TABLE IF NOT EXISTS favorites (
    id              TEXT    PRIMARY KEY,
    user_id         TEXT    NOT NULL,
    provider_id     TEXT    NOT NULL,
    created_at      TEXT    NOT NULL
);
"""

CREATE_REVIEWS_TABLE = """
CREATE TABLE IF NOT EXISTS reviews (
    id              TEXT    PRIMARY KEY,
    provider_id     TEXT    NOT NULL,
    order_id        TEXT,
    author          TEXT    NOT NULL DEFAULT 'Customer',
    rating          INTEGER NOT NULL CHECK(rating BETWEEN 1 AND 5),
    text            TEXT    NOT NULL DEFAULT '',
    at              TEXT    NOT NULL
);
"""

# ---------------------------------------------------------------------------
# Incremental migrations (idempotent – safe to run every startup)
# ---------------------------------------------------------------------------

MIGRATIONS = [
    # Provider profile fields added after the first release
    ("providers", "website",          "ALTER TABLE providers ADD COLUMN website          TEXT    NOT NULL DEFAULT ''"),
    ("providers", "phone",            "ALTER TABLE providers ADD COLUMN phone            TEXT    NOT NULL DEFAULT ''"),
    ("providers", "specialties",      "ALTER TABLE providers ADD COLUMN specialties      TEXT    NOT NULL DEFAULT ''"),
    ("providers", "hourly_rate",      "ALTER TABLE providers ADD COLUMN hourly_rate      REAL    NOT NULL DEFAULT 0.0"),
    ("providers", "availability",     "ALTER TABLE providers ADD COLUMN availability     TEXT    NOT NULL DEFAULT ''"),
    ("providers", "experience_years", "ALTER TABLE providers ADD COLUMN experience_years INTEGER NOT NULL DEFAULT 0"),
    ("providers", "languages",        "ALTER TABLE providers ADD COLUMN languages        TEXT    NOT NULL DEFAULT ''"),
    ("providers", "certifications",   "ALTER TABLE providers ADD COLUMN certifications   TEXT    NOT NULL DEFAULT ''"),
    ("providers", "portfolio",        "ALTER TABLE providers ADD COLUMN portfolio        TEXT    NOT NULL DEFAULT ''"),
    # Checkout amount and gateway reference on the audit trail
    ("interactions", "amount",        "ALTER TABLE interactions ADD COLUMN amount        REAL    NOT NULL DEFAULT 0.0"),
    ("interactions", "payment_ref",   "ALTER TABLE interactions ADD COLUMN payment_ref   TEXT    NOT NULL DEFAULT ''"),
    # Customer follow-up log mirrored from the linked conversation
    ("orders", "updates",             "ALTER TABLE orders ADD COLUMN updates             TEXT    NOT NULL DEFAULT '[]'"),
    ("orders", "last_message",        "ALTER TABLE orders ADD COLUMN last_message        TEXT    NOT NULL DEFAULT ''"),
    ("orders", "updated_at",          "ALTER TABLE orders ADD COLUMN updated_at          TEXT"),
]

INDEXES = [
    "CREATE UNIQUE INDEX IF NOT EXISTS users_email_lower_unique ON users (lower(email))",
    "CREATE INDEX IF NOT EXISTS listings_provider_idx ON listings (provider_id)",
    "CREATE INDEX IF NOT EXISTS orders_provider_idx ON orders (provider_id)",
    "CREATE INDEX IF NOT EXISTS messages_conversation_idx ON messages (conversation_id)",
    "CREATE UNIQUE INDEX IF NOT EXISTS conversations_participant_key_unique ON conversations (participant_key)",
    "CREATE INDEX IF NOT EXISTS conversation_members_conversation_idx ON conversation_members (conversation_id)",
    "CREATE UNIQUE INDEX IF NOT EXISTS favorites_user_provider_unique ON favorites (user_id, provider_id)",
]

# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

ALL_TABLES = [
    CREATE_USERS_TABLE,
    CREATE_PROVIDERS_TABLE,
    CREATE_LISTINGS_TABLE,
    CREATE_INTERACTIONS_TABLE,
    CREATE_ORDERS_TABLE,
    CREATE_CONVERSATIONS_TABLE,
    CREATE_CONVERSATION_MEMBERS_TABLE,
    CREATE_MESSAGES_TABLE,
    CREATE_FAVORITES_TABLE,
    CREATE_REVIEWS_TABLE,
]


def column_names(conn: sqlite3.Connection, table: str) -> list[str]:
    rows = conn.execute(f"PRAGMA table_info({table})").fetchall()
    return [r["name"] for r in rows]


def create_tables(conn: sqlite3.Connection) -> None:
    """Create all tables, apply incremental migrations and ensure indexes."""
    cursor = conn.cursor()

    # 1. Create tables (IF NOT EXISTS – safe on every restart)
    for ddl in ALL_TABLES:
        cursor.execute(ddl)

    # 2. Run migrations only when the column is missing
    for table, column, alter_sql in MIGRATIONS:
        if column not in column_names(conn, table):
            cursor.execute(alter_sql)

    # 3. Indexes
    for ddl in INDEXES:
        cursor.execute(ddl)

    conn.commit()
