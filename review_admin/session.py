from typing import Dict, Optional, Protocol

from sqlalchemy import select

from review_admin.clients.errors import AuthenticationError
from review_admin.models import AdminToken


class TokenStorage(Protocol):
    def get(self, key: str) -> Optional[str]: ...

    def set(self, key: str, token: str) -> None: ...

    def delete(self, key: str) -> None: ...


class MemoryTokenStorage:
    """Process-local storage; used by tests and single-user tooling."""

    def __init__(self, tokens: Optional[Dict[str, str]] = None):
        self._tokens: Dict[str, str] = dict(tokens or {})

    def get(self, key: str) -> Optional[str]:
        return self._tokens.get(key)

    def set(self, key: str, token: str) -> None:
        self._tokens[key] = token

    def delete(self, key: str) -> None:
        self._tokens.pop(key, None)


class SqlTokenStorage:
    """Persists tokens in the `admin_tokens` table so sessions survive restarts."""

    def __init__(self, session_factory):
        self._session_factory = session_factory

    def get(self, key: str) -> Optional[str]:
        with self._session_factory() as db:
            row = db.execute(
                select(AdminToken).where(AdminToken.session_key == key)
            ).scalar_one_or_none()
            return row.token if row else None

    def set(self, key: str, token: str) -> None:
        with self._session_factory() as db:
            row = db.get(AdminToken, key)
            if row is None:
                db.add(AdminToken(session_key=key, token=token))
            else:
                row.token = token
            db.commit()

    def delete(self, key: str) -> None:
        with self._session_factory() as db:
            row = db.get(AdminToken, key)
            if row is not None:
                db.delete(row)
                db.commit()


class AdminSession:
    """
    Authentication state for one dashboard user.

    Passed explicitly into every admin API call; the token itself lives in
    whichever TokenStorage the session was built with.
    """

    def __init__(self, storage: TokenStorage, key: Optional[str] = None):
        self.storage = storage
        self.key = key or AdminToken.new_key()

    @property
    def token(self) -> Optional[str]:
        return self.storage.get(self.key)

    @property
    def is_authenticated(self) -> bool:
        return bool(self.token)

    def set_token(self, token: str) -> None:
        self.storage.set(self.key, token)

    def clear(self) -> None:
        self.storage.delete(self.key)

    def auth_headers(self) -> Dict[str, str]:
        token = self.token
        if not token:
            raise AuthenticationError()
        return {"Authorization": f"Bearer {token}"}
