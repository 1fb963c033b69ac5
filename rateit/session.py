"""Authenticated session context."""

import logging

from .config import Settings
from .db import Database
from .errors import ConfigurationError, NotAuthenticatedError, NotFoundError
from .models import Profile

logger = logging.getLogger(__name__)

DEV_USER_ID = "00000000-0000-0000-0000-000000000001"
DEV_USERNAME = "devuser"


class SessionContext:
    """Holds the signed-in user for the lifetime of a session.

    Services take a session instead of reading a global, so tests can
    swap users freely. Writes call ``require_user()`` and fail with
    NotAuthenticatedError when nobody is signed in.
    """

    def __init__(self, db: Database, settings: Settings | None = None):
        self.db = db
        self.settings = settings or Settings()
        self._profile: Profile | None = None

    @property
    def user(self) -> Profile | None:
        return self._profile

    @property
    def user_id(self) -> str | None:
        return self._profile.id if self._profile else None

    @property
    def is_authenticated(self) -> bool:
        return self._profile is not None

    def start(self, user: str | None = None) -> Profile | None:
        """Resolve the session user on startup.

        Args:
            user: Profile id or username to sign in as

        Returns:
            The signed-in profile, or None when nobody is signed in

        Raises:
            NotFoundError: If the named user does not exist
            ConfigurationError: If the dev bypass is requested in production
        """
        if user:
            profile = self.db.get_profile(user) or self.db.get_profile_by_username(user)
            if not profile:
                raise NotFoundError(f"No such user: {user}")
            self._profile = profile
            logger.info("Signed in as %s", profile.username)
            return profile

        if self.settings.dev_bypass_auth:
            if self.settings.is_production:
                raise ConfigurationError("Dev auth bypass cannot be enabled in production")
            self._profile = self._dev_profile()
            logger.warning("Auth bypass active, acting as %s", DEV_USERNAME)
            return self._profile

        self._profile = None
        return None

    def sign_in(self, profile: Profile) -> None:
        self._profile = profile

    def sign_out(self) -> None:
        if self._profile:
            logger.info("Signed out %s", self._profile.username)
        self._profile = None

    def require_user(self) -> Profile:
        if self._profile is None:
            raise NotAuthenticatedError()
        return self._profile

    def _dev_profile(self) -> Profile:
        profile = self.db.get_profile(DEV_USER_ID)
        if profile:
            return profile
        profile = Profile(id=DEV_USER_ID, username=DEV_USERNAME, display_name="Dev User")
        self.db.upsert_profile(profile)
        return profile
