"""Team directory (users and clients) repository interface."""

from typing import Protocol

from standup.core.team import Client, User


class TeamRepository(Protocol):
    """Interface for team members and client tags."""

    def list_users(self) -> list[User]:
        ...

    def get_user(self, user_id: str) -> User | None:
        """Fetch a user. Returns None if not found."""
        ...

    def update_user(self, user: User) -> User:
        """Insert or overwrite a user profile."""
        ...

    def list_clients(self) -> list[Client]:
        ...

    def create_client(self, client: Client) -> Client:
        ...

    def update_client(self, client: Client) -> Client:
        ...

    def delete_client(self, client_id: str) -> None:
        ...
