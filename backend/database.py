from threading import Lock

from sqlalchemy import create_engine, inspect, text
from sqlalchemy.orm import declarative_base, sessionmaker

from backend.core import config


def build_engine(database_url: str):
    connect_args = {}
    if database_url.startswith("sqlite"):
        connect_args["check_same_thread"] = False
    return create_engine(database_url, echo=config.SQL_ECHO, connect_args=connect_args)


engine = build_engine(config.DATABASE_URL)

SessionLocal = sessionmaker(
    autocommit=False,
    autoflush=False,
    bind=engine,
)

Base = declarative_base()

_schema_lock = Lock()
_scheduling_schema_checked = False

_COLUMN_MIGRATIONS = (
    (
        'users',
        'booking_version',
        'ALTER TABLE users ADD COLUMN booking_version INTEGER NOT NULL DEFAULT 0',
    ),
)

# Tables created before the unique constraints existed only get them through these indexes.
_INDEXES = (
    (
        'availability_rules',
        'CREATE UNIQUE INDEX IF NOT EXISTS uq_availability_rules_provider_weekday '
        'ON availability_rules(provider_id, weekday)',
    ),
    (
        'appointments',
        'CREATE INDEX IF NOT EXISTS idx_appointments_provider_start '
        'ON appointments(provider_id, start_time)',
    ),
)


def ensure_scheduling_schema(bind=None) -> None:
    global _scheduling_schema_checked

    if _scheduling_schema_checked and bind is None:
        return

    target = bind if bind is not None else engine

    with _schema_lock:
        if _scheduling_schema_checked and bind is None:
            return

        inspector = inspect(target)
        existing_tables = set(inspector.get_table_names())

        with target.begin() as connection:
            for table_name, column_name, statement in _COLUMN_MIGRATIONS:
                if table_name not in existing_tables:
                    continue
                existing_columns = {column['name'] for column in inspector.get_columns(table_name)}
                if column_name not in existing_columns:
                    connection.execute(text(statement))
            for table_name, statement in _INDEXES:
                if table_name in existing_tables:
                    connection.execute(text(statement))

        if bind is None:
            _scheduling_schema_checked = True
