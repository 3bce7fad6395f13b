"""Session store: the single authority for the current principal.

Owns the authenticated user, the session token bundle, the user's profile
and the tenant linked to that profile. Exposes derived flags
(``is_authenticated``, role checks) computed from state on every read so
they cannot drift from it.

Lifecycle::

    uninitialized --initialize()--> initializing --> authenticated
                                                 \\-> unauthenticated
    authenticated --sign_out()--> unauthenticated
    unauthenticated --sign_in()--> authenticated

Every public action catches remote failures and reports them through the
returned :class:`ActionResult` or the ``error`` attribute; ``loading``
always settles to False.

Usage:
    store = SessionStore(identity, profiles, tenants, storage=storage)
    await store.initialize()
    if store.is_authenticated and store.has_role(Role.TENANT_ADMIN):
        ...
"""

from __future__ import annotations

import logging
import time
from collections.abc import Callable
from dataclasses import dataclass
from typing import TYPE_CHECKING, ClassVar

from pydantic import BaseModel

from reviewdesk.foundation.application import (
    REMOTE_ERRORS,
    BaseStore,
    StatePersister,
    describe_error,
)
from reviewdesk.foundation.domain import (
    ActionResult,
    Freshness,
    Profile,
    ProfileUpdate,
    Role,
    Session,
    Snapshot,
    Tenant,
    User,
    is_admin,
    is_super_admin,
    is_tenant_admin,
    role_satisfies,
)

if TYPE_CHECKING:
    from reviewdesk.foundation.domain.ports import (
        IdentityServicePort,
        ProfileServicePort,
        StateStoragePort,
        TenantServicePort,
    )

logger = logging.getLogger(__name__)

SESSION_STORAGE_KEY = "auth-storage"
SESSION_STATE_VERSION = 1

NO_USER_MESSAGE = "No user logged in"


@dataclass(frozen=True, slots=True)
class SessionStoreSettings:
    """Timing knobs for the session store.

    Attributes:
        session_timeout_seconds: Inactivity after which the session counts
            as idle.
        expiry_warning_seconds: Remaining lifetime at or below which
            ``session_expiring_soon`` is raised.
    """

    session_timeout_seconds: float = 1800
    expiry_warning_seconds: float = 300


class PersistedSessionState(BaseModel):
    """Subset of the session store that survives restarts."""

    user: User | None = None
    session: Session | None = None
    profile: Profile | None = None
    tenant: Tenant | None = None
    last_activity: float | None = None


class SessionStore(BaseStore):
    """Authentication state for one client.

    Args:
        identity: Remote identity service.
        profiles: Remote profile lookup.
        tenants: Remote tenant service, used to resolve the tenant linked to
            the profile. Without it ``tenant`` stays None.
        storage: Durable key-value area. Without it nothing is persisted.
        settings: Timing knobs; defaults to :class:`SessionStoreSettings`.
        clock: Returns the current time as epoch seconds.

    Attributes:
        user: Authenticated principal, or None.
        session: Live session; never set without ``user``.
        profile_snapshot: Profile together with its freshness.
        tenant: Tenant referenced by ``profile.tenant_id``.
        session_expiring_soon: Session lifetime is within the warning window.
        time_until_expiry: Seconds of session lifetime left at the last
            session-affecting operation.
        last_activity: Epoch seconds of the last recorded activity.
        session_timeout: Inactivity allowed before the session is idle.
    """

    persisted_fields: ClassVar[frozenset[str]] = frozenset(
        {"user", "session", "profile_snapshot", "tenant", "last_activity"}
    )

    def __init__(
        self,
        identity: IdentityServicePort,
        profiles: ProfileServicePort,
        tenants: TenantServicePort | None = None,
        storage: StateStoragePort | None = None,
        settings: SessionStoreSettings | None = None,
        clock: Callable[[], float] = time.time,
    ) -> None:
        persister = (
            StatePersister(storage, SESSION_STORAGE_KEY, PersistedSessionState, SESSION_STATE_VERSION)
            if storage is not None
            else None
        )
        super().__init__(persister)
        self._identity = identity
        self._profiles = profiles
        self._tenants = tenants
        self._settings = settings or SessionStoreSettings()
        self._clock = clock
        self._initialized = False
        # Bumped whenever the principal is dropped; results fetched under an
        # older generation are discarded.
        self._generation = 0
        self._apply_defaults()
        self._rehydrate()

    # -- Derived state ------------------------------------------------------

    @property
    def profile(self) -> Profile | None:
        return self.profile_snapshot.value

    @property
    def is_authenticated(self) -> bool:
        return self.user is not None

    @property
    def is_email_verified(self) -> bool:
        return self.user is not None and self.user.is_email_verified

    @property
    def role(self) -> Role | None:
        return self.profile.role if self.profile is not None else None

    @property
    def is_admin(self) -> bool:
        return is_admin(self.role)

    @property
    def is_super_admin(self) -> bool:
        return is_super_admin(self.role)

    @property
    def is_tenant_admin(self) -> bool:
        return is_tenant_admin(self.role)

    @property
    def is_initialized(self) -> bool:
        return self._initialized

    def has_role(self, need: Role | str) -> bool:
        return role_satisfies(self.role, need)

    def is_session_idle(self) -> bool:
        return self._clock() - self.last_activity > self.session_timeout

    # -- Setters ------------------------------------------------------------

    def set_user(self, user: User | None) -> None:
        self._set(user=user)

    def set_session(self, session: Session | None) -> None:
        """Replace the session; a new session counts as activity."""
        if session is None:
            self._set(session=None)
        else:
            self._set(session=session, last_activity=self._clock())

    def set_profile(self, profile: Profile | None) -> None:
        if profile is None:
            self._set(profile_snapshot=Snapshot.absent())
        else:
            self._set(profile_snapshot=Snapshot.fresh(profile, self._clock()))

    def set_tenant(self, tenant: Tenant | None) -> None:
        self._set(tenant=tenant)

    def update_last_activity(self) -> None:
        self._set(last_activity=self._clock())

    # -- Lifecycle ----------------------------------------------------------

    async def initialize(self) -> None:
        """Resolve an existing session, then the profile and linked tenant.

        Runs once until :meth:`reset`. The guard is raised before the first
        suspension, so a second call made while the first is in flight
        returns immediately.
        """
        if self._initialized:
            return
        self._initialized = True
        self._set(loading=True, error=None)
        generation = self._generation
        try:
            if self.session is not None:
                self._identity.restore_session(self.session)
            session = await self._identity.get_session()
            user = None
            if session is not None:
                user = session.user or await self._identity.get_user()
            if generation != self._generation:
                return
            if session is None or user is None:
                self._clear_principal()
                return
            self._apply_session(user, session)
            await self.refresh_profile()
        except REMOTE_ERRORS as exc:
            logger.warning("session_initialize_failed", extra={"error": describe_error(exc)})
            if generation == self._generation:
                self._set(error=describe_error(exc))
        finally:
            # reset() lowers the flag and wants loading=True back.
            if self._initialized:
                self._set(loading=False)

    def reset(self) -> None:
        """Return to the uninitialized defaults and forget persisted state."""
        self._initialized = False
        self._generation += 1
        self._apply_defaults()
        self._clear_persisted()
        self._notify()

    # -- Authentication -----------------------------------------------------

    async def sign_in(self, email: str, password: str) -> ActionResult[User]:
        """Exchange credentials for a session, then load the profile.

        The previous principal's profile and tenant are dropped before the
        profile is fetched, so after success the profile belongs to the new
        user or is absent.
        """
        self._set(loading=True, error=None)
        try:
            result = await self._identity.sign_in(email, password)
        except REMOTE_ERRORS as exc:
            message = describe_error(exc)
            logger.info("sign_in_failed", extra={"error": message})
            self._set(loading=False, error=message)
            return ActionResult.fail(message)

        user = result.user or (result.session.user if result.session else None)
        if result.session is None or user is None:
            message = "Sign in did not return a session"
            self._set(loading=False, error=message)
            return ActionResult.fail(message)

        self._set(profile_snapshot=Snapshot.absent(), tenant=None)
        self._apply_session(user, result.session)
        await self.refresh_profile()
        self._set(loading=False)
        logger.info("signed_in", extra={"user_id": user.id})
        return ActionResult.ok(user)

    async def sign_out(self) -> None:
        """Clear local state, then invalidate the session remotely.

        Local state is cleared before the remote call so no observer ever
        sees a half signed-out store. Remote failures are logged only.
        """
        user_id = self.user.id if self.user else None
        self._clear_principal()
        self._set(loading=False, error=None)
        try:
            await self._identity.sign_out()
        except REMOTE_ERRORS as exc:
            logger.warning(
                "remote_sign_out_failed",
                extra={"user_id": user_id, "error": describe_error(exc)},
            )
        else:
            logger.info("signed_out", extra={"user_id": user_id})

    async def sign_up(self, email: str, password: str, full_name: str) -> ActionResult[User]:
        """Create a remote account without signing in.

        Failures are returned to the caller and not recorded on the store.
        """
        self._set(loading=True)
        try:
            result = await self._identity.sign_up(email, password, full_name)
        except REMOTE_ERRORS as exc:
            return ActionResult.fail(describe_error(exc))
        finally:
            self._set(loading=False)
        return ActionResult.ok(result.user)

    async def refresh_session(self) -> None:
        """Exchange the refresh token and update user and session in place."""
        try:
            result = await self._identity.refresh_session()
        except REMOTE_ERRORS as exc:
            logger.warning("session_refresh_failed", extra={"error": describe_error(exc)})
            self._set(error=describe_error(exc))
            return

        user = result.user or (result.session.user if result.session else None) or self.user
        if result.session is None or user is None:
            self._clear_principal()
            return
        self._apply_session(user, result.session)

    async def check_session(self) -> None:
        """Re-validate the session against the identity service.

        A live session updates user and session and reloads the profile. No
        session clears the principal. Failures are logged and leave state
        untouched.
        """
        generation = self._generation
        try:
            session = await self._identity.get_session()
            user = None
            if session is not None:
                user = session.user or await self._identity.get_user()
        except REMOTE_ERRORS as exc:
            logger.warning("session_check_failed", extra={"error": describe_error(exc)})
            return

        if generation != self._generation:
            return
        if session is None or user is None:
            self._clear_principal()
            return
        self._apply_session(user, session)
        await self.refresh_profile()

    # -- Profile ------------------------------------------------------------

    async def refresh_profile(self) -> None:
        """Reload the profile and the tenant it links to.

        Without a user this does nothing. A failed lookup keeps the previous
        profile and marks it stale instead of clearing it. A result that
        arrives after the user signed out or changed is dropped.
        """
        if self.user is None:
            return
        user_id = self.user.id
        generation = self._generation
        try:
            profile = await self._profiles.get_profile(user_id)
        except REMOTE_ERRORS as exc:
            logger.warning(
                "profile_refresh_failed",
                extra={"user_id": user_id, "error": describe_error(exc)},
            )
            if self._owns(user_id, generation):
                self._set(profile_snapshot=self.profile_snapshot.mark_stale())
            return

        if not self._owns(user_id, generation):
            logger.info("profile_refresh_discarded", extra={"user_id": user_id})
            return
        self.set_profile(profile)
        await self._refresh_linked_tenant(profile, user_id, generation)

    async def update_profile(self, updates: ProfileUpdate) -> ActionResult[Profile]:
        """Apply a partial update remotely, then re-fetch the full profile."""
        if self.user is None:
            return ActionResult.fail(NO_USER_MESSAGE)
        self._set(loading=True)
        try:
            await self._profiles.update_profile(self.user.id, updates)
        except REMOTE_ERRORS as exc:
            self._set(loading=False)
            return ActionResult.fail(describe_error(exc))
        await self.refresh_profile()
        self._set(loading=False)
        return ActionResult.ok(self.profile)

    # -- Invitations and email verification ---------------------------------

    async def accept_invitation(self, token: str, password: str, full_name: str) -> bool:
        """Redeem an invitation and adopt the session it creates."""
        self._set(loading=True, error=None)
        try:
            await self._identity.accept_invitation(token, password, full_name)
        except REMOTE_ERRORS as exc:
            self._set(loading=False, error=describe_error(exc))
            return False
        await self.check_session()
        self._set(loading=False)
        return True

    async def send_verification_email(self) -> ActionResult[None]:
        if self.user is None or not self.user.email:
            return ActionResult.fail(NO_USER_MESSAGE)
        try:
            await self._identity.send_verification_email(self.user.email)
        except REMOTE_ERRORS as exc:
            return ActionResult.fail(describe_error(exc))
        return ActionResult.ok()

    async def verify_email(self, token: str) -> ActionResult[None]:
        """Confirm the email address, then pick up the confirmed user."""
        try:
            await self._identity.verify_email(token)
        except REMOTE_ERRORS as exc:
            return ActionResult.fail(describe_error(exc))
        await self.check_session()
        return ActionResult.ok()

    # -- Internals ----------------------------------------------------------

    def _apply_defaults(self) -> None:
        self.loading = True
        self.error = None
        self.user: User | None = None
        self.session: Session | None = None
        self.profile_snapshot: Snapshot[Profile] = Snapshot.absent()
        self.tenant: Tenant | None = None
        self.session_expiring_soon = False
        self.time_until_expiry: float = 0
        self.last_activity: float = self._clock()
        self.session_timeout: float = self._settings.session_timeout_seconds

    def _rehydrate(self) -> None:
        if self._persister is None:
            return
        state = self._persister.load()
        if state is None:
            return
        self.user = state.user
        # A session without its user cannot be used.
        self.session = state.session if state.user is not None else None
        if state.profile is not None:
            self.profile_snapshot = Snapshot(value=state.profile, freshness=Freshness.STALE)
        self.tenant = state.tenant
        if state.last_activity is not None:
            self.last_activity = state.last_activity

    def _apply_session(self, user: User, session: Session) -> None:
        remaining = max(session.seconds_until_expiry(self._clock()), 0)
        self._set(
            user=user,
            session=session,
            last_activity=self._clock(),
            time_until_expiry=remaining,
            session_expiring_soon=remaining <= self._settings.expiry_warning_seconds,
        )

    def _owns(self, user_id: str, generation: int) -> bool:
        return generation == self._generation and self.user is not None and self.user.id == user_id

    def _clear_principal(self) -> None:
        self._generation += 1
        self._set(
            user=None,
            session=None,
            profile_snapshot=Snapshot.absent(),
            tenant=None,
            session_expiring_soon=False,
            time_until_expiry=0,
        )

    async def _refresh_linked_tenant(self, profile: Profile, user_id: str, generation: int) -> None:
        if profile.tenant_id is None:
            self._set(tenant=None)
            return
        if self._tenants is None:
            return
        try:
            tenant = await self._tenants.get_tenant_by_id(profile.tenant_id)
        except REMOTE_ERRORS as exc:
            logger.warning(
                "linked_tenant_refresh_failed",
                extra={"tenant_id": profile.tenant_id, "error": describe_error(exc)},
            )
            return
        if self._owns(user_id, generation):
            self._set(tenant=tenant)

    def _persisted_state(self) -> PersistedSessionState:
        return PersistedSessionState(
            user=self.user,
            session=self.session,
            profile=self.profile,
            tenant=self.tenant,
            last_activity=self.last_activity,
        )
