from sqlalchemy import create_engine, inspect, text
from sqlalchemy.pool import StaticPool

from reservas import database


def test_ensure_scheduling_schema_backfills_legacy_appointments_table(monkeypatch) -> None:
    engine = create_engine('sqlite://', connect_args={'check_same_thread': False}, poolclass=StaticPool)
    with engine.begin() as connection:
        connection.execute(text(
            'CREATE TABLE appointments ('
            'id VARCHAR(36) PRIMARY KEY, business_id VARCHAR(36), '
            'start_time DATETIME, end_time DATETIME)'
        ))
    monkeypatch.setattr(database, '_scheduling_schema_checked', False)

    database.ensure_scheduling_schema(bind=engine)

    inspector = inspect(engine)
    columns = {column['name'] for column in inspector.get_columns('appointments')}
    indexes = {index['name'] for index in inspector.get_indexes('appointments')}
    assert {'recurrence_kind', 'recurrence_weekdays', 'is_recurring', 'parent_id'} <= columns
    assert {'idx_appointments_business_start', 'idx_appointments_parent_start'} <= indexes
    assert database._scheduling_schema_checked is True
    engine.dispose()


def test_ensure_scheduling_schema_skips_missing_table(monkeypatch) -> None:
    engine = create_engine('sqlite://', connect_args={'check_same_thread': False}, poolclass=StaticPool)
    monkeypatch.setattr(database, '_scheduling_schema_checked', False)

    database.ensure_scheduling_schema(bind=engine)

    assert inspect(engine).get_table_names() == []
    engine.dispose()
