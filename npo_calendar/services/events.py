"""Event queries and mutations.

Combines access evaluation with recurrence expansion. Reads are pure
functions of the current database state; every mutation runs inside a single
transaction so a series split never leaves a truncated series without its
successor.
"""

import logging
import uuid
from dataclasses import dataclass, field
from datetime import date, datetime, timedelta
from enum import Enum

from sqlalchemy import or_, true
from sqlalchemy.orm import Session, contains_eager, selectinload

from npo_calendar.database import transaction
from npo_calendar.errors import ConflictError, Forbidden, NotFound, ValidationError
from npo_calendar.models.category import Category as CategoryModel
from npo_calendar.models.event import Event as EventModel
from npo_calendar.models.event import EventException as EventExceptionModel
from npo_calendar.models.event import Visibility
from npo_calendar.models.mixins import utcnow
from npo_calendar.models.recurrence_rule import Frequency
from npo_calendar.models.recurrence_rule import RecurrenceRule as RecurrenceRuleModel
from npo_calendar.schemas.event import (
    EventCreate,
    EventUpdate,
    MutationScope,
    RecurrenceRuleCreate,
    validate_event_times,
)
from npo_calendar.services.access import (
    Principal,
    can_create,
    can_delete,
    can_edit,
    can_view,
)
from npo_calendar.services.recurrence import (
    Occurrence,
    count_before,
    expand,
    is_series_date,
    series_dates,
)

logger = logging.getLogger(__name__)

# Fields an update may never clear
REQUIRED_FIELDS = ("title", "start_time", "end_time", "all_day", "visibility")

# Fields an edited instance or successor template copies from its series
COPIED_FIELDS = ("title", "description", "all_day", "location", "visibility", "category_id")

# Reason recorded on the exception an edited instance stands in for
EDITED_REASON = "edited"


class MutationKind(str, Enum):
    """Kind of write requested."""

    CREATE = "create"
    UPDATE = "update"
    DELETE = "delete"


@dataclass
class Mutation:
    """A requested write.

    ``scope`` and ``target_date`` only matter for recurring events.
    """

    kind: MutationKind
    event_id: uuid.UUID | None = None
    data: EventCreate | EventUpdate | None = None
    scope: MutationScope = MutationScope.ALL
    target_date: date | None = None
    reason: str | None = None


@dataclass
class MutationOutcome:
    """Records produced by a mutation."""

    event: EventModel | None = None
    exception: EventExceptionModel | None = None
    successor: EventModel | None = None
    deleted_ids: list[uuid.UUID] = field(default_factory=list)


def visible_to(principal: Principal):
    """SQL filter mirroring can_view, applied as a storage-level backstop."""
    if principal.is_admin:
        return true()
    if principal.is_anonymous:
        return EventModel.visibility == Visibility.PUBLIC.value
    return or_(
        EventModel.visibility != Visibility.PRIVATE.value,
        EventModel.owner_id == principal.id,
    )


def _column_value(value):
    return value.value if isinstance(value, Enum) else value


def _rule_fields(rule: RecurrenceRuleModel) -> dict:
    return {
        "frequency": rule.frequency,
        "interval": rule.interval,
        "end_date": rule.end_date,
        "max_occurrences": rule.max_occurrences,
        "days_of_week": list(rule.days_of_week) if rule.days_of_week else None,
        "day_of_month": rule.day_of_month,
    }


def _new_rule(data: RecurrenceRuleCreate) -> RecurrenceRuleModel:
    return RecurrenceRuleModel(**{k: _column_value(v) for k, v in data.model_dump().items()})


class EventService:
    """Service for listing and mutating calendar events."""

    def __init__(self, db: Session) -> None:
        self.db = db

    # Reads

    def list_visible_events(
        self,
        principal: Principal,
        window_start: datetime,
        window_end: datetime,
        category_id: uuid.UUID | None = None,
    ) -> list[Occurrence]:
        """List everything ``principal`` may see starting in ``[window_start, window_end)``.

        Standalone events are matched on their start; templates contribute
        their expanded occurrences. An empty or inverted window yields nothing.
        The result is ordered by start, then id.
        """
        if window_end <= window_start:
            return []

        standalone_query = self.db.query(EventModel).filter(
            EventModel.recurrence_rule_id.is_(None),
            EventModel.start_time >= window_start,
            EventModel.start_time < window_end,
            visible_to(principal),
        )
        template_query = (
            self.db.query(EventModel)
            .join(EventModel.recurrence_rule)
            .filter(
                EventModel.start_time < window_end,
                or_(
                    RecurrenceRuleModel.end_date.is_(None),
                    RecurrenceRuleModel.end_date >= window_start.date(),
                ),
                visible_to(principal),
            )
            .options(
                contains_eager(EventModel.recurrence_rule),
                selectinload(EventModel.exceptions),
                selectinload(EventModel.edited_instances),
            )
        )
        if category_id is not None:
            standalone_query = standalone_query.filter(EventModel.category_id == category_id)
            template_query = template_query.filter(EventModel.category_id == category_id)

        occurrences: dict[tuple, Occurrence] = {}
        for event in standalone_query.all():
            occurrence = Occurrence.from_event(event)
            occurrences[(occurrence.id, None)] = occurrence

        for template in template_query.all():
            edited = {
                instance.original_start_date: instance for instance in template.edited_instances
            }
            for occurrence in expand(
                template,
                template.recurrence_rule,
                window_start,
                window_end,
                exceptions={e.exception_date for e in template.exceptions},
                edited=edited,
            ):
                if category_id is not None and occurrence.category_id != category_id:
                    continue
                key_date = occurrence.original_start_date if occurrence.is_generated else None
                occurrences.setdefault((occurrence.id, key_date), occurrence)

        visible = [o for o in occurrences.values() if can_view(o, principal)]
        return sorted(visible, key=lambda o: o.sort_key)

    def get_event(self, principal: Principal, event_id: uuid.UUID) -> EventModel:
        """Get an event by ID, as if it did not exist when the principal may not see it."""
        event = self.db.get(EventModel, event_id)
        if event is None or not can_view(event, principal):
            raise NotFound("Event not found")
        return event

    def list_exceptions(
        self, principal: Principal, event_id: uuid.UUID
    ) -> list[EventExceptionModel]:
        """List the suppressed dates of a series."""
        event = self.get_event(principal, event_id)
        return (
            self.db.query(EventExceptionModel)
            .filter(EventExceptionModel.event_id == event.id)
            .order_by(EventExceptionModel.exception_date.asc())
            .all()
        )

    # Writes

    def apply_mutation(self, principal: Principal, mutation: Mutation) -> MutationOutcome:
        """Authorize and apply one create, update or delete atomically.

        Raises:
            Forbidden: the principal knows the event but lacks the right
            NotFound: the event does not exist or is not visible to the principal
            ValidationError: malformed input or a date outside the series
            ConflictError: a concurrent write or a stale ``expected_version``
        """
        with transaction(self.db):
            if mutation.kind == MutationKind.CREATE:
                return self._create(principal, mutation.data)

            event = self._load_for_mutation(principal, mutation)
            if event.is_template:
                return self._mutate_series(event, mutation)
            if mutation.kind == MutationKind.UPDATE:
                return self._update_single(event, mutation.data)
            return self._delete_single(event)

    def create_event(self, principal: Principal, data: EventCreate) -> EventModel:
        outcome = self.apply_mutation(principal, Mutation(kind=MutationKind.CREATE, data=data))
        return outcome.event

    def _load_for_mutation(self, principal: Principal, mutation: Mutation) -> EventModel:
        if mutation.event_id is None:
            raise ValidationError("An event id is required")
        event = self.db.get(EventModel, mutation.event_id)
        if event is None or not can_view(event, principal):
            raise NotFound("Event not found")

        allowed = can_edit if mutation.kind == MutationKind.UPDATE else can_delete
        if not allowed(event, principal):
            logger.info(
                f"Denied {mutation.kind.value} of event {event.id} to principal {principal.id}"
            )
            raise Forbidden(f"Not allowed to {mutation.kind.value} this event")

        expected = getattr(mutation.data, "expected_version", None)
        if expected is not None and expected != event.version:
            raise ConflictError(
                f"Event is at version {event.version}, not {expected}; reload and retry"
            )
        return event

    def _create(self, principal: Principal, data: EventCreate) -> MutationOutcome:
        if not can_create(principal):
            raise Forbidden("Only managers and admins can create events")
        self._check_category(data.category_id)

        fields = data.model_dump(exclude={"recurrence"})
        event = EventModel(
            **{k: _column_value(v) for k, v in fields.items()},
            owner_id=principal.id,
        )
        if data.recurrence is not None:
            event.recurrence_rule = _new_rule(data.recurrence)

        self.db.add(event)
        self.db.flush()
        logger.info(f"Created event {event.id} for owner {principal.id}")
        return MutationOutcome(event=event)

    def _update_single(self, event: EventModel, data: EventUpdate) -> MutationOutcome:
        self._apply_changes(event, data.changes())
        if data.recurrence is not None:
            if event.series_id is not None:
                raise ValidationError("An edited instance cannot become a recurring series")
            event.recurrence_rule = _new_rule(data.recurrence)
        self.db.flush()
        logger.info(f"Updated event {event.id}")
        return MutationOutcome(event=event)

    def _delete_single(self, event: EventModel) -> MutationOutcome:
        event_id = event.id
        self.db.delete(event)
        self.db.flush()
        logger.info(f"Deleted event {event_id}")
        return MutationOutcome(deleted_ids=[event_id])

    def _mutate_series(self, template: EventModel, mutation: Mutation) -> MutationOutcome:
        scope = MutationScope(mutation.scope)
        target = mutation.target_date

        if scope != MutationScope.ALL:
            if target is None:
                raise ValidationError(f"target_date is required for scope '{scope.value}'")
            if not is_series_date(template, template.recurrence_rule, target):
                raise ValidationError(f"{target} is not an occurrence of this series")
            first = next(series_dates(template, template.recurrence_rule), None)
            if scope == MutationScope.ALL_FUTURE and (first is None or target <= first):
                scope = MutationScope.ALL

        # Bump the template's version so concurrent series edits collide
        template.updated_at = utcnow()

        is_update = mutation.kind == MutationKind.UPDATE
        if scope == MutationScope.THIS_INSTANCE:
            if is_update:
                return self._edit_instance(template, target, mutation.data, mutation.reason)
            return self._delete_instance(template, target, mutation.reason)
        if scope == MutationScope.ALL_FUTURE:
            return self._split_series(template, target, mutation.data if is_update else None)
        if is_update:
            return self._update_series(template, mutation.data)
        return self._delete_series(template)

    def _edit_instance(
        self, template: EventModel, target: date, data: EventUpdate, reason: str | None
    ) -> MutationOutcome:
        if data.recurrence is not None:
            raise ValidationError("A single occurrence cannot carry its own recurrence")

        instance = self._edited_instance(template, target)
        exception = self._exception(template, target)
        if instance is None and exception is not None:
            raise NotFound("Occurrence not found")

        if exception is None:
            exception = EventExceptionModel(
                event=template, exception_date=target, reason=reason or EDITED_REASON
            )
            self.db.add(exception)

        if instance is None:
            start_time = datetime.combine(target, template.start_time.timetz())
            instance = EventModel(
                **{name: getattr(template, name) for name in COPIED_FIELDS},
                start_time=start_time,
                end_time=start_time + template.duration,
                owner_id=template.owner_id,
                series=template,
                original_start_date=target,
            )
            self.db.add(instance)

        self._apply_changes(instance, data.changes())
        self.db.flush()
        logger.info(f"Edited occurrence {target} of series {template.id} as event {instance.id}")
        return MutationOutcome(event=instance, exception=exception)

    def _delete_instance(
        self, template: EventModel, target: date, reason: str | None
    ) -> MutationOutcome:
        instance = self._edited_instance(template, target)
        exception = self._exception(template, target)
        if instance is None and exception is not None:
            raise NotFound("Occurrence not found")

        deleted_ids = []
        if exception is None:
            exception = EventExceptionModel(
                event=template, exception_date=target, reason=reason
            )
            self.db.add(exception)
        elif reason is not None or exception.reason == EDITED_REASON:
            exception.reason = reason
        if instance is not None:
            deleted_ids.append(instance.id)
            template.edited_instances.remove(instance)

        self.db.flush()
        logger.info(f"Deleted occurrence {target} of series {template.id}")
        return MutationOutcome(event=template, exception=exception, deleted_ids=deleted_ids)

    def _split_series(
        self, template: EventModel, target: date, data: EventUpdate | None
    ) -> MutationOutcome:
        """End the series the day before ``target``; an update continues it as a new series."""
        rule = self._detach_rule(template)
        original = _rule_fields(rule)
        remaining = None
        if rule.max_occurrences:
            remaining = rule.max_occurrences - count_before(template, rule, target)

        rule.end_date = target - timedelta(days=1)
        rule.max_occurrences = None

        deleted_ids = []
        for instance in list(template.edited_instances):
            if instance.original_start_date >= target:
                deleted_ids.append(instance.id)
                template.edited_instances.remove(instance)
        for exception in list(template.exceptions):
            if exception.exception_date >= target:
                template.exceptions.remove(exception)

        successor = None
        if data is not None:
            if data.recurrence is not None:
                successor_rule = _new_rule(data.recurrence)
            else:
                successor_rule = RecurrenceRuleModel(**{**original, "max_occurrences": remaining})
                if successor_rule.frequency == Frequency.MONTHLY.value:
                    successor_rule.day_of_month = original["day_of_month"] or template.start_time.day

            start_time = datetime.combine(target, template.start_time.timetz())
            successor = EventModel(
                **{name: getattr(template, name) for name in COPIED_FIELDS},
                start_time=start_time,
                end_time=start_time + template.duration,
                owner_id=template.owner_id,
                recurrence_rule=successor_rule,
            )
            self.db.add(successor)
            self._apply_changes(successor, data.changes())

        self.db.flush()
        logger.info(
            f"Split series {template.id} at {target}"
            + (f" into successor {successor.id}" if successor is not None else "")
        )
        return MutationOutcome(event=template, successor=successor, deleted_ids=deleted_ids)

    def _update_series(self, template: EventModel, data: EventUpdate) -> MutationOutcome:
        self._apply_changes(template, data.changes())
        if data.recurrence is not None:
            old_rule = template.recurrence_rule
            template.recurrence_rule = _new_rule(data.recurrence)
            self.db.flush()
            self._drop_rule_if_unused(old_rule)
        self.db.flush()
        logger.info(f"Updated whole series {template.id}")
        return MutationOutcome(event=template)

    def _delete_series(self, template: EventModel) -> MutationOutcome:
        """Delete a template with its exceptions and its edited instances."""
        rule = template.recurrence_rule
        deleted_ids = [template.id] + [instance.id for instance in template.edited_instances]
        self.db.delete(template)
        self.db.flush()
        self._drop_rule_if_unused(rule)
        logger.info(f"Deleted series {deleted_ids[0]} and {len(deleted_ids) - 1} edited instances")
        return MutationOutcome(deleted_ids=deleted_ids)

    # Helpers

    def _apply_changes(self, event: EventModel, changes: dict) -> None:
        for name in REQUIRED_FIELDS:
            if name in changes and changes[name] is None:
                raise ValidationError(f"{name} cannot be cleared")
        if changes.get("category_id") is not None:
            self._check_category(changes["category_id"])
        if "start_time" in changes and "end_time" not in changes:
            # Moving the start keeps the duration
            changes = {**changes, "end_time": changes["start_time"] + event.duration}

        for name, value in changes.items():
            setattr(event, name, _column_value(value))
        validate_event_times(event.start_time, event.end_time)

    def _check_category(self, category_id: uuid.UUID | None) -> None:
        if category_id is None:
            return
        category = self.db.get(CategoryModel, category_id)
        if category is None or not category.is_active:
            raise ValidationError("Unknown or inactive category")

    def _exception(self, template: EventModel, day: date) -> EventExceptionModel | None:
        return next((e for e in template.exceptions if e.exception_date == day), None)

    def _edited_instance(self, template: EventModel, day: date) -> EventModel | None:
        return next(
            (e for e in template.edited_instances if e.original_start_date == day), None
        )

    def _detach_rule(self, template: EventModel) -> RecurrenceRuleModel:
        """Give the template a private copy of its rule when other templates share it."""
        rule = template.recurrence_rule
        shared = (
            self.db.query(EventModel)
            .filter(EventModel.recurrence_rule_id == rule.id, EventModel.id != template.id)
            .count()
        )
        if shared:
            rule = RecurrenceRuleModel(**_rule_fields(rule))
            template.recurrence_rule = rule
        return rule

    def _drop_rule_if_unused(self, rule: RecurrenceRuleModel) -> None:
        in_use = self.db.query(EventModel).filter(EventModel.recurrence_rule_id == rule.id).count()
        if not in_use:
            self.db.delete(rule)
            self.db.flush()
