import os
from datetime import datetime

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker

os.environ.setdefault('DATABASE_URL', 'sqlite://')

from backend.database import Base  # noqa: E402
from backend.models.appointment import Appointment  # noqa: E402
from backend.models.user import User  # noqa: E402
from backend.services.scheduling import SchedulingService  # noqa: E402

FIXED_NOW = datetime(2025, 3, 1, 8, 0)

PROVIDER_ID = 1
REQUESTER_ID = 2
OTHER_REQUESTER_ID = 3
OTHER_PROVIDER_ID = 4


class RecordingNotifier:
    def __init__(self):
        self.calls = []

    def notify(self, appointment_id, old_status, new_status):
        self.calls.append((appointment_id, old_status, new_status))


def seed_users(db) -> None:
    db.add_all([
        User(id=PROVIDER_ID, email='ada@clinic.example', display_name='Dr. Ada Byron', role='provider'),
        User(id=REQUESTER_ID, email='sam@example.com', display_name='Sam Patient', role='requester'),
        User(id=OTHER_REQUESTER_ID, email='kim@example.com', display_name='Kim Patient', role='requester'),
        User(id=OTHER_PROVIDER_ID, email='lee@clinic.example', display_name='Dr. Lee Chen', role='provider'),
    ])
    db.commit()


def make_appointment(db, **overrides) -> Appointment:
    values = {
        'provider_id': PROVIDER_ID,
        'requester_id': REQUESTER_ID,
        'title': 'Checkup',
        'start_time': datetime(2025, 3, 10, 10, 0),
        'duration_minutes': 30,
        'status': 'scheduled',
        'requester_role': 'requester',
    }
    values.update(overrides)
    appointment = Appointment(**values)
    db.add(appointment)
    db.commit()
    db.refresh(appointment)
    return appointment


@pytest.fixture
def db():
    engine = create_engine('sqlite:///:memory:')
    testing_session_local = sessionmaker(autocommit=False, autoflush=False, bind=engine)
    Base.metadata.create_all(bind=engine)

    session = testing_session_local()
    try:
        seed_users(session)
        yield session
    finally:
        session.close()
        Base.metadata.drop_all(bind=engine)
        engine.dispose()


@pytest.fixture
def notifier() -> RecordingNotifier:
    return RecordingNotifier()


@pytest.fixture
def service(db, notifier) -> SchedulingService:
    return SchedulingService(db, notifier=notifier, clock=lambda: FIXED_NOW)
