"""Per-provider booking lock backing the no-double-booking guarantee."""

from sqlalchemy.orm import Session

from backend.models.user import User


def lock_provider_calendar(db: Session, provider_id: int) -> None:
    """Take the provider's booking lock for the rest of the current transaction.

    The update write-locks the provider's ``users`` row (the whole database on
    SQLite), so a concurrent booking for the same provider waits here until this
    transaction commits or rolls back, and then sees its result.
    """
    db.query(User).filter(User.id == provider_id).update(
        {User.booking_version: User.booking_version + 1},
        synchronize_session=False,
    )
