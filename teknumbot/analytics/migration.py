"""Schema for the analytics tables."""

from __future__ import annotations

from sqlalchemy import text

_HOURS = (
    "zero_hour one_hour two_hour three_hour four_hour five_hour six_hour seven_hour "
    "eight_hour nine_hour ten_hour eleven_hour twelve_hour thirteen_hour fourteen_hour "
    "fifteen_hour sixteen_hour seventeen_hour eighteen_hour nineteen_hour twenty_hour "
    "twentyone_hour twentytwo_hour twentythree_hour"
).split()

_STATEMENTS = (
    """CREATE TABLE IF NOT EXISTS captcha_swarm (
        user_id BIGINT NOT NULL,
        group_id BIGINT NOT NULL,
        username VARCHAR(255),
        display_name VARCHAR(255),
        finished_captcha BOOLEAN NOT NULL,
        joined_at TIMESTAMP
    )""",
    """CREATE TABLE IF NOT EXISTS analytics (
        user_id BIGINT PRIMARY KEY,
        group_id BIGINT,
        username VARCHAR(255),
        display_name VARCHAR(255),
        counter INTEGER DEFAULT 0,
        created_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP,
        joined_at TIMESTAMP,
        updated_at TIMESTAMP
    )""",
    "CREATE INDEX IF NOT EXISTS idx_counter ON analytics (counter)",
    "CREATE INDEX IF NOT EXISTS idx_active ON analytics (updated_at)",
    "CREATE TABLE IF NOT EXISTS analytics_hourly (todays_date VARCHAR(20) UNIQUE, "
    + ", ".join(f"{hour} INTEGER DEFAULT 0" for hour in _HOURS)
    + ")",
)


def migrate(engine) -> None:
    """Create the analytics tables and indexes; safe to run repeatedly."""
    with engine.connect().execution_options(isolation_level="SERIALIZABLE") as conn:
        with conn.begin():
            for statement in _STATEMENTS:
                conn.execute(text(statement))