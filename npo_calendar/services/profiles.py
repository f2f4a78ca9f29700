"""Profile registration, principal resolution and role changes."""

import logging
import uuid

from sqlalchemy.orm import Session

from npo_calendar.database import transaction
from npo_calendar.errors import ConflictError, Forbidden, NotFound, Unauthenticated
from npo_calendar.models.profile import Profile as ProfileModel
from npo_calendar.models.profile import Role
from npo_calendar.schemas.profile import ProfileCreate, ProfileUpdate
from npo_calendar.services.access import Principal, can_change_role

logger = logging.getLogger(__name__)


class ProfileService:
    """Service for calendar profiles and their roles."""

    def __init__(self, db: Session) -> None:
        self.db = db

    def resolve_principal(self, principal_id: uuid.UUID | None) -> Principal:
        """Turn the identity provider's principal id into a principal with its current role."""
        if principal_id is None:
            return Principal.anonymous()
        profile = self.db.get(ProfileModel, principal_id)
        if profile is None:
            raise Unauthenticated("Unknown principal")
        return Principal.from_profile(profile)

    def register(self, data: ProfileCreate) -> ProfileModel:
        """Create a member profile; the very first profile becomes the admin."""
        with transaction(self.db):
            existing = (
                self.db.query(ProfileModel).filter(ProfileModel.email == data.email).first()
            )
            if existing:
                raise ConflictError("Profile with this email already exists")

            has_admin = (
                self.db.query(ProfileModel).filter(ProfileModel.role == Role.ADMIN.value).first()
                is not None
            )
            role = Role.MEMBER if has_admin else Role.ADMIN
            profile = ProfileModel(**data.model_dump(), role=role.value)
            self.db.add(profile)

        logger.info(f"Registered profile {profile.id} as {role.value}")
        return profile

    def list_profiles(self, principal: Principal) -> list[ProfileModel]:
        self._require_authenticated(principal)
        return self.db.query(ProfileModel).order_by(ProfileModel.display_name.asc()).all()

    def get_profile(self, principal: Principal, profile_id: uuid.UUID) -> ProfileModel:
        self._require_authenticated(principal)
        profile = self.db.get(ProfileModel, profile_id)
        if profile is None:
            raise NotFound("Profile not found")
        return profile

    def update_profile(self, principal: Principal, data: ProfileUpdate) -> ProfileModel:
        """Update the calling principal's own profile."""
        profile = self.get_profile(principal, principal.id)
        with transaction(self.db):
            for field, value in data.model_dump(exclude_unset=True).items():
                if value is not None:
                    setattr(profile, field, value)
        return profile

    def change_role(
        self, actor: Principal, target_id: uuid.UUID, new_role: Role
    ) -> ProfileModel:
        """Give ``target_id`` the role ``new_role``.

        The admin set is read at the moment of the request so two concurrent
        demotions cannot both see another admin left behind.
        """
        with transaction(self.db):
            target = self.db.get(ProfileModel, target_id)
            if target is None:
                raise NotFound("Profile not found")

            admins = [
                Principal.from_profile(p)
                for p in self.db.query(ProfileModel)
                .filter(ProfileModel.role == Role.ADMIN.value)
                .with_for_update()
                .all()
            ]
            target_principal = Principal.from_profile(target)
            if not can_change_role(actor, target_principal, new_role, admins):
                logger.warning(
                    f"Denied role change of {target_id} to {Role(new_role).value} by {actor.id}"
                )
                raise Forbidden(self._denial_reason(actor, target_principal))

            previous = target.role
            target.role = Role(new_role).value

        logger.info(f"Changed role of {target_id} from {previous} to {target.role} by {actor.id}")
        return target

    def _denial_reason(self, actor: Principal, target: Principal) -> str:
        if not actor.is_admin:
            return "Only admins can change roles"
        if actor.id == target.id:
            return "Admins cannot change their own role"
        return "The last remaining admin cannot be demoted"

    def _require_authenticated(self, principal: Principal) -> None:
        if principal.is_anonymous:
            raise Unauthenticated("Sign in to view profiles")
