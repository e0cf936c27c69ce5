"""In-memory user directory for development and tests."""

from backoffice.directory.port import User, UserDirectory


class InMemoryDirectory(UserDirectory):
    """Directory backed by a dict, keyed by the string form of the user id."""

    def __init__(self):
        self._users: dict[str, User] = {}

    def register(self, user_id, display_name=None, email=None, roles=(), region=None, capabilities=()) -> User:
        user = User(
            id=str(user_id),
            display_name=display_name,
            email=email,
            roles=frozenset(roles),
            region=region,
            capabilities=frozenset(capabilities),
        )
        self._users[user.id] = user
        return user

    def find_by_id(self, user_id) -> User | None:
        if user_id is None:
            return None
        return self._users.get(str(user_id))

    def search(self, text: str) -> list[User]:
        needle = (text or "").strip().lower()
        if not needle:
            return []
        return [
            user
            for user in self._users.values()
            if needle in (user.display_name or "").lower() or needle in (user.email or "").lower()
        ]

    def clear(self):
        self._users.clear()
