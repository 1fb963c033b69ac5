"""Bundle of the shared objects every service needs."""

from dataclasses import dataclass, field

from .cache import QueryCache
from .db import Database
from .models import Profile
from .session import SessionContext


@dataclass
class AppContext:
    db: Database
    session: SessionContext
    cache: QueryCache = field(default_factory=QueryCache)

    def require_user(self) -> Profile:
        return self.session.require_user()

    def invalidate_user(self, user_id: str, families: tuple[str, ...] | list[str]) -> None:
        self.cache.invalidate_many(families, user_id)
