"""Profile API endpoints."""

import uuid

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from npo_calendar.api.deps import get_principal
from npo_calendar.database import get_db
from npo_calendar.models.profile import Profile as ProfileModel
from npo_calendar.schemas.profile import Profile, ProfileCreate, ProfileUpdate, RoleChange
from npo_calendar.services.access import Principal
from npo_calendar.services.profiles import ProfileService

router = APIRouter(prefix="/api/v1/profiles", tags=["profiles"])


@router.post("/", response_model=Profile, status_code=201)
def register_profile(profile: ProfileCreate, db: Session = Depends(get_db)) -> ProfileModel:
    """Register a profile for a newly authenticated person."""
    return ProfileService(db).register(profile)


@router.get("/", response_model=list[Profile])
def list_profiles(
    principal: Principal = Depends(get_principal), db: Session = Depends(get_db)
) -> list[ProfileModel]:
    """List all profiles."""
    return ProfileService(db).list_profiles(principal)


@router.get("/me", response_model=Profile)
def get_my_profile(
    principal: Principal = Depends(get_principal), db: Session = Depends(get_db)
) -> ProfileModel:
    """Get the caller's own profile."""
    return ProfileService(db).get_profile(principal, principal.id)


@router.patch("/me", response_model=Profile)
def update_my_profile(
    profile_update: ProfileUpdate,
    principal: Principal = Depends(get_principal),
    db: Session = Depends(get_db),
) -> ProfileModel:
    """Update the caller's own profile."""
    return ProfileService(db).update_profile(principal, profile_update)


@router.get("/{profile_id}", response_model=Profile)
def get_profile(
    profile_id: uuid.UUID,
    principal: Principal = Depends(get_principal),
    db: Session = Depends(get_db),
) -> ProfileModel:
    """Get a profile by ID."""
    return ProfileService(db).get_profile(principal, profile_id)


@router.put("/{profile_id}/role", response_model=Profile)
def change_role(
    profile_id: uuid.UUID,
    role_change: RoleChange,
    principal: Principal = Depends(get_principal),
    db: Session = Depends(get_db),
) -> ProfileModel:
    """Change a profile's role (admins only, never their own)."""
    return ProfileService(db).change_role(principal, profile_id, role_change.role)
