"""Signup and profile management."""

from __future__ import annotations

import logging
from typing import Any

from uniride.config import Settings
from uniride.domain.entities import UserProfile
from uniride.domain.enums import UserType
from uniride.domain.errors import EmailTaken, InvalidInput, NotFound
from uniride.infrastructure.identity import IdentityProvider
from uniride.infrastructure.kv_store import KVStore
from uniride.infrastructure.repositories import UserRepository
from uniride.services.clock import Clock

logger = logging.getLogger(__name__)

# Fields a user may change on their own profile
EDITABLE_FIELDS = ("name", "student_id", "batch", "department")


class AccountService:
    def __init__(
        self,
        store: KVStore,
        identity: IdentityProvider,
        clock: Clock,
        settings: Settings,
    ):
        self.store = store
        self.identity = identity
        self.clock = clock
        self.settings = settings
        self.users = UserRepository(store)

    async def signup(
        self,
        *,
        email: str,
        password: str,
        name: str,
        student_id: str,
        batch: str,
        department: str,
        user_type: UserType,
    ) -> UserProfile:
        email = email.strip().lower()
        if not email.endswith(self.settings.university_email_domain.lower()):
            logger.info("Signup rejected, invalid email domain: %s", email)
            raise InvalidInput("Invalid university email domain")
        if await self.users.get_id_by_email(email):
            raise EmailTaken()

        is_passenger = user_type == UserType.PASSENGER
        user_id = await self.identity.create_user(
            email,
            password,
            {
                "name": name,
                "student_id": student_id,
                "batch": batch,
                "department": department,
                "user_type": user_type.value,
                "verified": is_passenger,
                "verification_status": "verified" if is_passenger else "pending",
            },
        )
        profile = UserProfile.new(
            id=user_id,
            email=email,
            name=name,
            student_id=student_id,
            batch=batch,
            department=department,
            user_type=user_type,
            now=self.clock(),
        )
        await self.users.save(profile)
        await self.store.commit()
        logger.info("User %s signed up as %s", user_id, user_type.value)
        return profile

    async def get_profile(self, user_id: str) -> UserProfile:
        profile = await self.users.get_by_id(user_id)
        if profile is None:
            raise NotFound("User profile not found")
        return profile

    async def update_profile(self, user_id: str, changes: dict[str, Any]) -> UserProfile:
        profile = await self.get_profile(user_id)
        for name in EDITABLE_FIELDS:
            if changes.get(name) is not None:
                setattr(profile, name, changes[name])
        profile.updated_at = self.clock()
        await self.users.save(profile)
        await self.store.commit()
        return profile
