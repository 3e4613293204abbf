"""Auth state container for the storefront and back-office identities."""
from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Any, Union

from pydantic import ValidationError

from storefront.core.constants import ADMIN_LOGIN_PATH, AUTH_STORAGE_KEY, LOGIN_PATH
from storefront.core.persisted_store import PersistedStore
from storefront.domain.loadable import LOADING, Loadable, Ready, is_ready
from storefront.domain.schemas import AdminProfile, UserProfile

logger = logging.getLogger(__name__)

Profile = Union[UserProfile, AdminProfile]


class Audience(str, Enum):
    """Identity namespace; tokens of different audiences are never mixed."""

    USER = "user"
    ADMIN = "admin"

    @property
    def login_path(self) -> str:
        return ADMIN_LOGIN_PATH if self is Audience.ADMIN else LOGIN_PATH


# Persisted field names per slot: (profile, token)
_SLOT_FIELDS = {
    Audience.USER: ("user", "token"),
    Audience.ADMIN: ("admin", "adminToken"),
}

_PROFILE_MODELS = {
    Audience.USER: UserProfile,
    Audience.ADMIN: AdminProfile,
}


@dataclass(frozen=True)
class Session:
    """What a consumer is allowed to see for one identity slot."""

    profile: Profile | None = None
    token: str | None = None
    has_hydrated: bool = False

    @property
    def is_authenticated(self) -> bool:
        return self.token is not None


@dataclass(frozen=True)
class _Slot:
    profile: Profile | None = None
    token: str | None = None


ANONYMOUS = _Slot()


class AuthStore:
    """Two independently keyed identity slots persisted in one snapshot.

    Until :meth:`hydrate` finishes every read reports the anonymous session,
    even if storage already holds a valid token.
    """

    def __init__(self, storage: PersistedStore, key: str = AUTH_STORAGE_KEY) -> None:
        self._storage = storage
        self._key = key
        self._state: Loadable[dict[Audience, _Slot]] = LOADING
        # Slots changed before hydration finished; applied over the snapshot.
        self._early: dict[Audience, _Slot] = {}

    @property
    def has_hydrated(self) -> bool:
        return is_ready(self._state)

    async def hydrate(self) -> None:
        payload = await self._storage.load(self._key)
        if self.has_hydrated:
            return
        restored = self._restore(payload)
        # Logins and logouts issued before hydration finished take precedence.
        restored.update(self._early)
        self._state = Ready(restored)
        if self._early:
            self._early = {}
            self._persist(restored)
        logger.debug(
            "Auth hydrated (user=%s, admin=%s)",
            restored[Audience.USER].token is not None,
            restored[Audience.ADMIN].token is not None,
        )

    @staticmethod
    def _restore(payload: Any) -> dict[Audience, _Slot]:
        slots = {Audience.USER: ANONYMOUS, Audience.ADMIN: ANONYMOUS}
        if not isinstance(payload, dict):
            return slots
        for audience, (profile_field, token_field) in _SLOT_FIELDS.items():
            token = payload.get(token_field)
            raw_profile = payload.get(profile_field)
            if not isinstance(token, str) or not token:
                continue
            try:
                profile = _PROFILE_MODELS[audience].model_validate(raw_profile)
            except ValidationError:
                logger.warning("Discarding invalid persisted %s profile", audience.value)
                continue
            slots[audience] = _Slot(profile=profile, token=token)
        return slots

    def _commit(self, audience: Audience, slot: _Slot) -> None:
        if not isinstance(self._state, Ready):
            # Persisted once hydration has merged the stored snapshot.
            self._early[audience] = slot
            return
        slots = dict(self._state.value)
        slots[audience] = slot
        self._state = Ready(slots)
        self._persist(slots)

    def _persist(self, slots: dict[Audience, _Slot]) -> None:
        snapshot: dict[str, Any] = {}
        for aud, (profile_field, token_field) in _SLOT_FIELDS.items():
            current = slots[aud]
            snapshot[profile_field] = current.profile.model_dump() if current.profile else None
            snapshot[token_field] = current.token
        try:
            self._storage.set(self._key, snapshot)
        except Exception as exc:
            logger.warning("Auth snapshot was not persisted: %s", exc)

    # ---------- reads (hydration-gated) ----------

    def session(self, audience: Audience = Audience.USER) -> Session:
        if not isinstance(self._state, Ready):
            return Session()
        slot = self._state.value[audience]
        return Session(profile=slot.profile, token=slot.token, has_hydrated=True)

    def token_for(self, audience: Audience) -> str | None:
        return self.session(audience).token

    def is_authenticated(self, audience: Audience = Audience.USER) -> bool:
        return self.session(audience).is_authenticated

    @property
    def user(self) -> UserProfile | None:
        return self.session(Audience.USER).profile  # type: ignore[return-value]

    @property
    def admin(self) -> AdminProfile | None:
        return self.session(Audience.ADMIN).profile  # type: ignore[return-value]

    # ---------- transitions ----------

    def login(self, token: str, user: UserProfile) -> None:
        self._commit(Audience.USER, _Slot(profile=user, token=token))
        logger.info("User %s logged in", user.user_id)

    def logout(self) -> None:
        self.clear(Audience.USER)

    def admin_login(self, token: str, admin: AdminProfile) -> None:
        self._commit(Audience.ADMIN, _Slot(profile=admin, token=token))
        logger.info("Admin %s logged in", admin.username)

    def admin_logout(self) -> None:
        self.clear(Audience.ADMIN)

    def clear(self, audience: Audience) -> None:
        """Drop one slot's credentials; the other slot is untouched."""
        self._commit(audience, ANONYMOUS)
        logger.info("%s session cleared", audience.value.capitalize())
