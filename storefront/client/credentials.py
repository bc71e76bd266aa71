from typing import Optional, Protocol


class CredentialStore(Protocol):
    """Where the client keeps the bearer token between requests."""

    def get_token(self) -> Optional[str]: ...

    def save(self, token: str, user: Optional[dict] = None) -> None: ...

    def clear(self) -> None: ...


class InMemoryCredentialStore:
    def __init__(self, token: Optional[str] = None, user: Optional[dict] = None):
        self.token = token
        self.user = user

    def get_token(self) -> Optional[str]:
        return self.token

    def save(self, token: str, user: Optional[dict] = None) -> None:
        self.token = token
        self.user = user

    def clear(self) -> None:
        self.token = None
        self.user = None
