from sqlalchemy import create_engine, inspect, text
from sqlalchemy.orm import sessionmaker

from backend.database import Base, ensure_scheduling_schema
from backend.models.user import User
from backend.services.reservations import lock_provider_calendar


def test_ensure_scheduling_schema_is_idempotent() -> None:
    engine = create_engine('sqlite:///:memory:')
    Base.metadata.create_all(bind=engine)

    ensure_scheduling_schema(bind=engine)
    ensure_scheduling_schema(bind=engine)

    index_names = {index['name'] for index in inspect(engine).get_indexes('appointments')}
    assert 'idx_appointments_provider_start' in index_names
    engine.dispose()


def test_ensure_scheduling_schema_adds_booking_version_to_existing_users() -> None:
    engine = create_engine('sqlite:///:memory:')
    with engine.begin() as connection:
        connection.execute(text(
            'CREATE TABLE users (id INTEGER PRIMARY KEY, email VARCHAR, display_name VARCHAR, role VARCHAR)'
        ))
        connection.execute(text(
            "INSERT INTO users (id, email, display_name, role) VALUES (1, 'ada@clinic.example', 'Ada', 'provider')"
        ))

    ensure_scheduling_schema(bind=engine)
    ensure_scheduling_schema(bind=engine)

    column_names = {column['name'] for column in inspect(engine).get_columns('users')}
    assert 'booking_version' in column_names

    session = sessionmaker(bind=engine)()
    lock_provider_calendar(session, 1)
    session.commit()
    assert session.query(User).filter(User.id == 1).one().booking_version == 1
    session.close()
    engine.dispose()
