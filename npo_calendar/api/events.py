"""Event API endpoints."""

import uuid
from datetime import date, datetime, timedelta

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.orm import Session

from npo_calendar.api.deps import get_principal
from npo_calendar.config import get_app_config
from npo_calendar.database import get_db
from npo_calendar.models.event import Event as EventModel
from npo_calendar.models.event import EventException as EventExceptionModel
from npo_calendar.schemas.event import (
    Event,
    EventCreate,
    EventException,
    EventOccurrence,
    EventUpdate,
    MutationResult,
    MutationScope,
)
from npo_calendar.services.access import Principal
from npo_calendar.services.calendar_time import to_calendar_time
from npo_calendar.services.events import (
    EventService,
    Mutation,
    MutationKind,
    MutationOutcome,
)
from npo_calendar.services.recurrence import Occurrence

router = APIRouter(prefix="/api/v1/events", tags=["events"])


def _to_result(outcome: MutationOutcome) -> MutationResult:
    return MutationResult(
        event=Event.model_validate(outcome.event) if outcome.event else None,
        exception=EventException.model_validate(outcome.exception) if outcome.exception else None,
        successor=Event.model_validate(outcome.successor) if outcome.successor else None,
        deleted_ids=outcome.deleted_ids,
    )


@router.get("/", response_model=list[EventOccurrence])
def list_events(
    start: datetime = Query(..., description="Inclusive window start"),
    end: datetime | None = Query(None, description="Exclusive window end"),
    category_id: uuid.UUID | None = None,
    principal: Principal = Depends(get_principal),
    db: Session = Depends(get_db),
) -> list[Occurrence]:
    """List the events and occurrences visible to the caller in a window."""
    window_start = to_calendar_time(start)
    if end is None:
        window_end = window_start + timedelta(days=get_app_config().calendar["default_window_days"])
    else:
        window_end = to_calendar_time(end)
    if window_end <= window_start:
        raise HTTPException(status_code=422, detail="Window end must be after window start")
    return EventService(db).list_visible_events(principal, window_start, window_end, category_id)


@router.post("/", response_model=Event, status_code=201)
def create_event(
    event: EventCreate,
    principal: Principal = Depends(get_principal),
    db: Session = Depends(get_db),
) -> EventModel:
    """Create an event, recurring when a recurrence is given."""
    return EventService(db).create_event(principal, event)


@router.get("/{event_id}", response_model=Event)
def get_event(
    event_id: uuid.UUID,
    principal: Principal = Depends(get_principal),
    db: Session = Depends(get_db),
) -> EventModel:
    """Get an event by ID."""
    return EventService(db).get_event(principal, event_id)


@router.get("/{event_id}/exceptions", response_model=list[EventException])
def list_event_exceptions(
    event_id: uuid.UUID,
    principal: Principal = Depends(get_principal),
    db: Session = Depends(get_db),
) -> list[EventExceptionModel]:
    """List the suppressed dates of a recurring event."""
    return EventService(db).list_exceptions(principal, event_id)


@router.patch("/{event_id}", response_model=MutationResult)
def update_event(
    event_id: uuid.UUID,
    event_update: EventUpdate,
    scope: MutationScope = Query(MutationScope.ALL, description="Part of a series to change"),
    target_date: date | None = Query(None, description="Occurrence the change starts at"),
    principal: Principal = Depends(get_principal),
    db: Session = Depends(get_db),
) -> MutationResult:
    """Update an event, one occurrence, or a series from an occurrence on."""
    outcome = EventService(db).apply_mutation(
        principal,
        Mutation(
            kind=MutationKind.UPDATE,
            event_id=event_id,
            data=event_update,
            scope=scope,
            target_date=target_date,
        ),
    )
    return _to_result(outcome)


@router.delete("/{event_id}", response_model=MutationResult)
def delete_event(
    event_id: uuid.UUID,
    scope: MutationScope = Query(MutationScope.ALL, description="Part of a series to delete"),
    target_date: date | None = Query(None, description="Occurrence the deletion starts at"),
    reason: str | None = Query(None, max_length=500),
    principal: Principal = Depends(get_principal),
    db: Session = Depends(get_db),
) -> MutationResult:
    """Delete an event, one occurrence, or a series from an occurrence on."""
    outcome = EventService(db).apply_mutation(
        principal,
        Mutation(
            kind=MutationKind.DELETE,
            event_id=event_id,
            scope=scope,
            target_date=target_date,
            reason=reason,
        ),
    )
    return _to_result(outcome)
