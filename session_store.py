"""Who is logged in to the dashboard, and their credit balance.

Two variants share one interface:

* ``RestSessionStore`` logs in through ``/api/auth/login`` and keeps the
  returned identity and token in client storage. A stored pair is trusted on
  restore without asking the server.
* ``HostedSessionStore`` signs in through Supabase auth and follows the
  SDK's auth state-change events; identity comes from the ``profiles`` table,
  provisioned on first sign-in.

Stores are constructed explicitly and handed to the dashboard and views.
"""
import logging
from typing import Callable, List, Optional

from pydantic import ValidationError

from auth import default_profile
from gateways import GatewayError, RestGateway, SupabaseGateway
from schemas import ProfileSchema, Role
from storage import ONBOARDING_KEY, TOKEN_KEY, USER_KEY, ClientStorage

logger = logging.getLogger(__name__)

Observer = Callable[[Optional[ProfileSchema]], None]


class SessionStore:
    supports_signup = False

    def __init__(self, storage: ClientStorage):
        self.storage = storage
        self.user: Optional[ProfileSchema] = None
        self.is_loading = True
        self.last_error: Optional[str] = None
        self._observers: List[Observer] = []

    # ---------------------- OBSERVERS ----------------------
    def subscribe(self, observer: Observer) -> Callable[[], None]:
        self._observers.append(observer)

        def unsubscribe():
            if observer in self._observers:
                self._observers.remove(observer)

        return unsubscribe

    def _set_user(self, user: Optional[ProfileSchema]) -> None:
        self.user = user
        for observer in list(self._observers):
            observer(user)

    # ---------------------- STATE ----------------------
    @property
    def is_authenticated(self) -> bool:
        return self.user is not None

    @property
    def is_admin(self) -> bool:
        return self.user is not None and self.user.role == Role.admin

    @property
    def has_seen_onboarding(self) -> bool:
        return self.storage.get_item(ONBOARDING_KEY) == "true"

    def mark_onboarding_seen(self) -> None:
        self.storage.set_item(ONBOARDING_KEY, "true")

    # ---------------------- OPERATIONS ----------------------
    def restore(self) -> None:
        raise NotImplementedError

    def login(self, email: str, password: str) -> bool:
        raise NotImplementedError

    def signup(self, email: str, password: str, name: str) -> bool:
        self.last_error = "Sign up is not available with this backend."
        return False

    def update_credits(self, credits: int) -> None:
        raise NotImplementedError

    def logout(self) -> None:
        for key in (USER_KEY, TOKEN_KEY, ONBOARDING_KEY):
            self.storage.remove_item(key)
        self.last_error = None
        if self.user is not None:
            logger.info(f"[SESSION] {self.user.email} logged out")
        self._set_user(None)

    def close(self) -> None:
        pass


class RestSessionStore(SessionStore):
    def __init__(self, gateway: RestGateway, storage: ClientStorage):
        super().__init__(storage)
        self.gateway = gateway

    def get_token(self) -> Optional[str]:
        return self.storage.get_item(TOKEN_KEY)

    def restore(self) -> None:
        stored_user = self.storage.get_json(USER_KEY)
        token = self.get_token()

        # Presence of both is taken as a valid session; no expiry check
        if stored_user and token:
            try:
                self._set_user(ProfileSchema.model_validate(stored_user))
            except ValidationError:
                logger.warning("[SESSION] Stored identity is unreadable, ignoring it")
        self.is_loading = False

    def login(self, email: str, password: str) -> bool:
        try:
            result = self.gateway.login(email, password)
        except GatewayError as e:
            logger.info(f"[SESSION] Login failed for {email}: {e}")
            return False

        self.storage.set_json(USER_KEY, result.user.model_dump(mode="json"))
        self.storage.set_item(TOKEN_KEY, result.token)
        self._set_user(result.user)
        logger.info(f"[SESSION] {result.user.email} logged in as {result.user.role.value}")
        return True

    def update_credits(self, credits: int) -> None:
        # Local merge only: the backend balance is not written here
        if self.user is None:
            return
        updated = self.user.model_copy(update={"credits": credits})
        self.storage.set_json(USER_KEY, updated.model_dump(mode="json"))
        self._set_user(updated)


class HostedSessionStore(SessionStore):
    supports_signup = True

    def __init__(self, client, gateway: SupabaseGateway, storage: ClientStorage):
        super().__init__(storage)
        self.client = client
        self.gateway = gateway
        self._subscription = None

    def restore(self) -> None:
        self._subscription = self.client.auth.on_auth_state_change(self._on_auth_state_change)
        try:
            session = self.client.auth.get_session()
        except Exception as e:
            logger.warning(f"[SESSION] Could not read the current auth session: {e}")
            session = None
        if session is not None and session.user is not None:
            self._load_profile(session.user)
        self.is_loading = False

    def close(self) -> None:
        if self._subscription is not None:
            self._subscription.unsubscribe()
            self._subscription = None

    def _on_auth_state_change(self, event, session) -> None:
        logger.debug(f"[SESSION] Auth event {event}")
        if event == "SIGNED_OUT" or session is None or session.user is None:
            if self.user is not None:
                self._set_user(None)
            return
        self._load_profile(session.user)

    def _load_profile(self, auth_user) -> Optional[ProfileSchema]:
        if self.user is not None and str(self.user.id) == str(auth_user.id):
            return self.user

        try:
            profile = self.gateway.get_profile(auth_user.id)
            if profile is None:
                profile = self.gateway.create_profile(self._new_profile(auth_user))
                logger.info(f"[SESSION] Provisioned profile for {profile.email} as {profile.role.value}")
        except GatewayError as e:
            logger.warning(f"[SESSION] Could not load profile for {auth_user.id}: {e}")
            return None

        self._set_user(profile)
        return profile

    @staticmethod
    def _new_profile(auth_user) -> ProfileSchema:
        email = auth_user.email or ""
        metadata = getattr(auth_user, "user_metadata", None) or {}
        name = metadata.get("name") or email.split("@")[0]
        return ProfileSchema(id=auth_user.id, name=name, email=email, **default_profile(email))

    def login(self, email: str, password: str) -> bool:
        try:
            response = self.client.auth.sign_in_with_password({"email": email, "password": password})
        except Exception as e:
            logger.info(f"[SESSION] Login failed for {email}: {e}")
            self.last_error = str(e)
            return False

        if response.user is None:
            return False
        if self._load_profile(response.user) is None:
            # Signed in without a profile: undo it so the store and the SDK agree
            self._discard_sign_in()
            return False
        return True

    def _discard_sign_in(self) -> None:
        try:
            self.client.auth.sign_out()
        except Exception as e:
            logger.warning(f"[SESSION] Sign out failed: {e}")
        self._set_user(None)

    def signup(self, email: str, password: str, name: str) -> bool:
        try:
            response = self.client.auth.sign_up(
                {"email": email, "password": password, "options": {"data": {"name": name}}}
            )
        except Exception as e:
            self.last_error = str(e)
            logger.info(f"[SESSION] Sign up failed for {email}: {e}")
            return False

        if response.user is None:
            self.last_error = "Sign up failed"
            return False

        self.last_error = None
        # Without a session the address still needs confirming; the
        # profile is provisioned on the first sign-in instead
        if response.session is not None:
            self._load_profile(response.user)
        return True

    def update_credits(self, credits: int) -> None:
        if self.user is None:
            return
        self._set_user(self.gateway.set_credits(self.user.id, credits))

    def logout(self) -> None:
        try:
            self.client.auth.sign_out()
        except Exception as e:
            logger.warning(f"[SESSION] Sign out failed: {e}")
        super().logout()
