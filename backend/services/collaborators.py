"""Interfaces to the services scheduling relies on but does not own."""

import logging
from typing import Protocol

from sqlalchemy.orm import Session

from backend.models.user import User

logger = logging.getLogger(__name__)


class ProfileLookup(Protocol):
    def display_name(self, user_id: int) -> str:
        ...


class Notifier(Protocol):
    def notify(self, appointment_id: int, old_status: str | None, new_status: str) -> None:
        ...


class UserProfileLookup:
    def __init__(self, db: Session):
        self.db = db

    def display_name(self, user_id: int) -> str:
        user = self.db.query(User).filter(User.id == user_id).first()
        if user is None:
            return f'User {user_id}'
        return user.display_name or user.email or f'User {user_id}'


class LoggingNotifier:
    def notify(self, appointment_id: int, old_status: str | None, new_status: str) -> None:
        logger.info(
            'Appointment %s changed from %s to %s',
            appointment_id,
            old_status or 'new',
            new_status,
        )
