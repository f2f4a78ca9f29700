"""Access evaluation for events, categories and roles.

Every check is a pure predicate over the principal's role at the time of the
call. Denial is a ``False`` return, never an exception: callers decide whether
to surface it as NotFound or Forbidden.
"""

import uuid
from collections.abc import Iterable
from dataclasses import dataclass
from typing import Protocol

from npo_calendar.models.event import Visibility
from npo_calendar.models.profile import Role

EDITOR_ROLES = frozenset({Role.MANAGER, Role.ADMIN})


class Ownable(Protocol):
    """Anything with a visibility and an owner: events and occurrences."""

    visibility: str
    owner_id: uuid.UUID


@dataclass(frozen=True)
class Principal:
    """The viewer of a request: anonymous, or an id with exactly one role."""

    id: uuid.UUID | None = None
    role: Role | None = None

    def __post_init__(self) -> None:
        if (self.id is None) != (self.role is None):
            raise ValueError("A principal has both an id and a role, or neither")
        if self.role is not None and not isinstance(self.role, Role):
            object.__setattr__(self, "role", Role(self.role))

    @classmethod
    def anonymous(cls) -> "Principal":
        return cls()

    @classmethod
    def from_profile(cls, profile) -> "Principal":
        return cls(id=profile.id, role=Role(profile.role))

    @property
    def is_anonymous(self) -> bool:
        return self.id is None

    @property
    def is_admin(self) -> bool:
        return self.role == Role.ADMIN


def can_view(event: Ownable, principal: Principal) -> bool:
    """Decide read access from the event's own visibility; category plays no part."""
    visibility = Visibility(event.visibility)
    if visibility == Visibility.PUBLIC:
        return True
    if principal.is_anonymous:
        return False
    if visibility == Visibility.INTERNAL:
        return True
    return principal.is_admin or event.owner_id == principal.id


def can_create(principal: Principal) -> bool:
    return principal.role in EDITOR_ROLES


def can_edit(event: Ownable, principal: Principal) -> bool:
    if principal.is_admin:
        return True
    return principal.role in EDITOR_ROLES and event.owner_id == principal.id


def can_delete(event: Ownable, principal: Principal) -> bool:
    return can_edit(event, principal)


def can_manage_categories(principal: Principal) -> bool:
    return principal.is_admin


def can_change_role(
    actor: Principal,
    target: Principal,
    new_role: Role,
    principals: Iterable[Principal],
) -> bool:
    """Decide whether ``actor`` may give ``target`` the role ``new_role``.

    ``principals`` must be the full current principal set: the system keeps
    at least one admin, so demoting the last one is refused whoever asks.
    """
    if not actor.is_admin or target.is_anonymous:
        return False
    if actor.id == target.id:
        return False

    admins = {p.id for p in principals if p.is_admin}
    if Role(new_role) == Role.ADMIN:
        admins.add(target.id)
    else:
        admins.discard(target.id)
    return len(admins) >= 1
