from threading import Lock

from sqlalchemy import create_engine, inspect, text
from sqlalchemy.orm import declarative_base, sessionmaker

from reservas.core import config


def _connect_args(database_url: str) -> dict:
    if database_url.startswith("sqlite"):
        return {"check_same_thread": False}
    return {}


engine = create_engine(
    config.DATABASE_URL,
    connect_args=_connect_args(config.DATABASE_URL),
    echo=config.SQL_ECHO,
    pool_pre_ping=True,
)

SessionLocal = sessionmaker(
    autocommit=False,
    autoflush=False,
    bind=engine,
)

Base = declarative_base()

_schema_lock = Lock()
_scheduling_schema_checked = False


def get_db():
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def ensure_scheduling_schema(bind=None) -> None:
    """Back-fill recurrence columns and lookup indexes on databases created
    before series support existed. Runs once per process."""
    global _scheduling_schema_checked

    if _scheduling_schema_checked:
        return

    with _schema_lock:
        if _scheduling_schema_checked:
            return

        target = bind or engine
        inspector = inspect(target)

        if 'appointments' not in inspector.get_table_names():
            _scheduling_schema_checked = True
            return

        existing_columns = {column['name'] for column in inspector.get_columns('appointments')}
        migration_steps = [
            ('recurrence_kind', "ALTER TABLE appointments ADD COLUMN recurrence_kind VARCHAR(20) DEFAULT 'NONE'"),
            ('recurrence_interval_days', 'ALTER TABLE appointments ADD COLUMN recurrence_interval_days INTEGER'),
            ('recurrence_weekdays', 'ALTER TABLE appointments ADD COLUMN recurrence_weekdays VARCHAR(64)'),
            ('recurrence_count', 'ALTER TABLE appointments ADD COLUMN recurrence_count INTEGER'),
            ('recurrence_end_date', 'ALTER TABLE appointments ADD COLUMN recurrence_end_date DATE'),
            ('is_recurring', 'ALTER TABLE appointments ADD COLUMN is_recurring BOOLEAN DEFAULT FALSE'),
            ('parent_id', 'ALTER TABLE appointments ADD COLUMN parent_id VARCHAR(36)'),
        ]

        with target.begin() as connection:
            for column_name, statement in migration_steps:
                if column_name not in existing_columns:
                    connection.execute(text(statement))
            connection.execute(
                text('CREATE INDEX IF NOT EXISTS idx_appointments_business_start ON appointments(business_id, start_time)')
            )
            connection.execute(
                text('CREATE INDEX IF NOT EXISTS idx_appointments_parent_start ON appointments(parent_id, start_time)')
            )

        _scheduling_schema_checked = True
