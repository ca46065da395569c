"""Persistent weekly availability rules, one per provider per weekday."""

import logging
from datetime import time

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from backend.core.errors import ValidationError
from backend.models.availability import AvailabilityRule

logger = logging.getLogger(__name__)

WEEKDAY_NAMES = ('Sunday', 'Monday', 'Tuesday', 'Wednesday', 'Thursday', 'Friday', 'Saturday')


def validate_weekday(weekday: int) -> int:
    if not isinstance(weekday, int) or isinstance(weekday, bool) or not 0 <= weekday <= 6:
        raise ValidationError('Weekday must be an integer from 0 (Sunday) to 6 (Saturday).')
    return weekday


class AvailabilityStore:
    def __init__(self, db: Session):
        self.db = db

    def set_rule(
        self,
        provider_id: int,
        weekday: int,
        start_time: time,
        end_time: time,
        is_available: bool = True,
    ) -> AvailabilityRule:
        """Insert or update the rule for ``(provider_id, weekday)``.

        The update and insert paths both go through the unique constraint, so
        two concurrent first-time saves for the same weekday end with one row.
        """
        validate_weekday(weekday)
        if end_time <= start_time:
            raise ValidationError('End time must be after start time.')

        rule = self.get_rule(provider_id, weekday)
        if rule is None:
            rule = AvailabilityRule(provider_id=provider_id, weekday=weekday)
            self.db.add(rule)

        rule.start_time = start_time
        rule.end_time = end_time
        rule.is_available = is_available

        try:
            self.db.commit()
        except IntegrityError:
            # Lost the insert race; the other writer's row is the one to update.
            self.db.rollback()
            rule = self.get_rule(provider_id, weekday)
            rule.start_time = start_time
            rule.end_time = end_time
            rule.is_available = is_available
            self.db.commit()

        self.db.refresh(rule)
        logger.info(
            'Availability for provider %s on %s set to %s-%s (available=%s)',
            provider_id,
            WEEKDAY_NAMES[weekday],
            start_time.strftime('%H:%M'),
            end_time.strftime('%H:%M'),
            is_available,
        )
        return rule

    def get_rules(self, provider_id: int) -> list[AvailabilityRule]:
        return self.db.query(AvailabilityRule).filter(
            AvailabilityRule.provider_id == provider_id,
        ).order_by(AvailabilityRule.weekday.asc()).all()

    def get_rule(self, provider_id: int, weekday: int) -> AvailabilityRule | None:
        return self.db.query(AvailabilityRule).filter(
            AvailabilityRule.provider_id == provider_id,
            AvailabilityRule.weekday == weekday,
        ).one_or_none()
