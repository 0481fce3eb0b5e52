"""Supabase adapter - HTTP client for the hosted tables (PostgREST + auth)."""

import logging
import time
from datetime import date, timedelta

import requests

from standup.config import Config, Tokens, load_config
from standup.core.cards import ActivityCard
from standup.core.recurring import RecurringTask
from standup.core.team import Client, User
from standup.errors import (
    AuthenticationError,
    CardNotFoundError,
    DuplicateCardError,
    StoreError,
)

logger = logging.getLogger(__name__)

REST_PATH = "/rest/v1"
AUTH_TOKEN_PATH = "/auth/v1/token"
UNIQUE_VIOLATION = "23505"


class SupabaseAdapter:
    """
    Supabase REST adapter.

    Implements CardRepository, RecurringTaskRepository and TeamRepository.
    Handles session token refresh and API calls. No business logic - just I/O.
    """

    def __init__(self, config: Config | None = None, tokens: Tokens | None = None):
        self.config = config or load_config()
        self.tokens = tokens or Tokens.load()
        self._session = requests.Session()
        self.base_url = self.config.supabase_url.rstrip("/")
        if not self.base_url or not self.config.supabase_anon_key:
            raise AuthenticationError(
                "Missing Supabase settings. Add SUPABASE_URL and SUPABASE_ANON_KEY to config/standup.conf"
            )

    def _ensure_valid_token(self) -> None:
        """Refresh token if expired or expiring soon."""
        if not self.tokens.access_token:
            raise AuthenticationError("No access token. Run 'standup auth' first.")

        # Refresh if expiring within 5 minutes
        if self.tokens.expires_at and time.time() >= self.tokens.expires_at - 300:
            self._refresh_token()

    def _refresh_token(self) -> None:
        """Refresh the access token."""
        if not self.tokens.refresh_token:
            raise AuthenticationError("No refresh token. Run 'standup auth' first.")

        resp = self._session.post(
            f"{self.base_url}{AUTH_TOKEN_PATH}",
            params={"grant_type": "refresh_token"},
            headers={"apikey": self.config.supabase_anon_key},
            json={"refresh_token": self.tokens.refresh_token},
        )

        if resp.status_code != 200:
            raise AuthenticationError(f"Token refresh failed: {resp.text}")

        logger.debug("Refreshed Supabase session token")
        _apply_session(self.tokens, resp.json())
        self.tokens.save()

    def _request(
        self,
        method: str,
        table: str,
        params: list[tuple[str, str]] | None = None,
        json_body: dict | list | None = None,
        prefer: str | None = None,
    ) -> list[dict]:
        """Make an authenticated PostgREST request and return the rows."""
        self._ensure_valid_token()
        headers = {
            "apikey": self.config.supabase_anon_key,
            "Authorization": f"Bearer {self.tokens.access_token}",
        }
        if prefer:
            headers["Prefer"] = prefer

        try:
            resp = self._session.request(
                method,
                f"{self.base_url}{REST_PATH}/{table}",
                params=params,
                json=json_body,
                headers=headers,
            )
        except requests.RequestException as e:
            raise StoreError(f"Request to {table} failed: {e}") from e

        _raise_for_error(resp, table)

        if not resp.content:
            return []
        data = resp.json()
        return data if isinstance(data, list) else [data]

    # ============== Cards ==============

    def get_card(self, user_id: str, on_date: date) -> ActivityCard | None:
        """Fetch one user's card for a date. Returns None if not found.

        Dates are matched as whole-day ranges so rows stored as timestamps are found too.
        """
        rows = self._request(
            "GET",
            "activity_cards",
            params=[
                ("select", "*"),
                ("user_id", f"eq.{user_id}"),
                ("date", f"gte.{on_date.isoformat()}"),
                ("date", f"lt.{(on_date + timedelta(days=1)).isoformat()}"),
                ("limit", "1"),
            ],
        )
        return ActivityCard.from_row(rows[0]) if rows else None

    def list_cards(
        self, start: date, end: date, user_id: str | None = None
    ) -> list[ActivityCard]:
        """Fetch cards dated within [start, end], newest first."""
        params = [
            ("select", "*"),
            ("date", f"gte.{start.isoformat()}"),
            ("date", f"lt.{(end + timedelta(days=1)).isoformat()}"),
            ("order", "date.desc"),
        ]
        if user_id:
            params.append(("user_id", f"eq.{user_id}"))
        return [ActivityCard.from_row(r) for r in self._request("GET", "activity_cards", params=params)]

    def create_card(self, card: ActivityCard) -> ActivityCard:
        """Insert a card. The table's (user_id, date) unique constraint rejects duplicates."""
        rows = self._request(
            "POST", "activity_cards", json_body=[card.to_row()], prefer="return=representation"
        )
        if not rows:
            raise StoreError("Failed to create card")
        return ActivityCard.from_row(rows[0])

    def update_card(self, card: ActivityCard) -> ActivityCard:
        """Overwrite an existing card."""
        rows = self._request(
            "PATCH",
            "activity_cards",
            params=[("id", f"eq.{card.id}")],
            json_body=card.to_row(),
            prefer="return=representation",
        )
        if not rows:
            raise CardNotFoundError(f"No card with id {card.id}")
        return ActivityCard.from_row(rows[0])

    def delete_card(self, card_id: str) -> None:
        """Delete a card by id."""
        self._request("DELETE", "activity_cards", params=[("id", f"eq.{card_id}")])

    # ============== Recurring tasks ==============

    def list_recurring_tasks(self, user_id: str) -> list[RecurringTask]:
        """Fetch a user's recurring task definitions, newest first."""
        rows = self._request(
            "GET",
            "recurring_tasks",
            params=[
                ("select", "*"),
                ("user_id", f"eq.{user_id}"),
                ("order", "created_at.desc"),
            ],
        )
        return [RecurringTask.from_row(r) for r in rows]

    def create_recurring_task(self, task: RecurringTask) -> RecurringTask:
        """Insert a definition and return it with its id."""
        rows = self._request(
            "POST", "recurring_tasks", json_body=[task.to_row()], prefer="return=representation"
        )
        if not rows:
            raise StoreError("Failed to create recurring task")
        return RecurringTask.from_row(rows[0])

    def delete_recurring_task(self, task_id: str) -> None:
        """Delete a definition by id."""
        self._request("DELETE", "recurring_tasks", params=[("id", f"eq.{task_id}")])

    # ============== Team ==============

    def list_users(self) -> list[User]:
        return [User.from_row(r) for r in self._request("GET", "users", params=[("select", "*")])]

    def get_user(self, user_id: str) -> User | None:
        """Fetch a user. Returns None if not found."""
        rows = self._request(
            "GET", "users", params=[("select", "*"), ("id", f"eq.{user_id}"), ("limit", "1")]
        )
        return User.from_row(rows[0]) if rows else None

    def update_user(self, user: User) -> User:
        """Insert or overwrite a user profile."""
        rows = self._request(
            "POST",
            "users",
            json_body=[user.to_row()],
            prefer="resolution=merge-duplicates,return=representation",
        )
        return User.from_row(rows[0]) if rows else user

    def list_clients(self) -> list[Client]:
        rows = self._request("GET", "clients", params=[("select", "*"), ("order", "tag.asc")])
        return [Client.from_row(r) for r in rows]

    def create_client(self, client: Client) -> Client:
        rows = self._request(
            "POST", "clients", json_body=[client.to_row()], prefer="return=representation"
        )
        if not rows:
            raise StoreError("Failed to create client")
        return Client.from_row(rows[0])

    def update_client(self, client: Client) -> Client:
        rows = self._request(
            "PATCH",
            "clients",
            params=[("id", f"eq.{client.id}")],
            json_body=client.to_row(),
            prefer="return=representation",
        )
        return Client.from_row(rows[0]) if rows else client

    def delete_client(self, client_id: str) -> None:
        self._request("DELETE", "clients", params=[("id", f"eq.{client_id}")])


def _apply_session(tokens: Tokens, data: dict) -> None:
    """Copy an auth token response onto tokens."""
    tokens.access_token = data["access_token"]
    if "refresh_token" in data:
        tokens.refresh_token = data["refresh_token"]
    tokens.expires_at = int(time.time()) + data.get("expires_in", 3600)
    user = data.get("user") or {}
    if user.get("id"):
        tokens.user_id = user["id"]


def _raise_for_error(resp: requests.Response, table: str) -> None:
    """Map PostgREST error responses onto the store error hierarchy."""
    if resp.ok:
        return

    try:
        body = resp.json()
    except ValueError:
        body = {}
    code = body.get("code", "") if isinstance(body, dict) else ""
    message = body.get("message", resp.text) if isinstance(body, dict) else resp.text

    if resp.status_code == 409 or code == UNIQUE_VIOLATION:
        if table == "activity_cards":
            raise DuplicateCardError(message)
        raise StoreError(f"{table} conflict: {message}")
    if resp.status_code in (401, 403):
        raise AuthenticationError(f"Not authorized for {table}: {message}")

    logger.error(f"Supabase {table} request failed ({resp.status_code}): {message}")
    raise StoreError(f"{table} request failed ({resp.status_code}): {message}")


def sign_in(email: str, password: str, config: Config | None = None) -> Tokens:
    """Sign in with email and password, and save the session tokens."""
    config = config or load_config()

    if not config.supabase_url or not config.supabase_anon_key:
        raise AuthenticationError(
            "Missing Supabase settings. Add SUPABASE_URL and SUPABASE_ANON_KEY to config/standup.conf"
        )
    if not email or not password:
        raise AuthenticationError("Email and password are required")

    resp = requests.post(
        f"{config.supabase_url.rstrip('/')}{AUTH_TOKEN_PATH}",
        params={"grant_type": "password"},
        headers={"apikey": config.supabase_anon_key},
        json={"email": email, "password": password},
    )

    if resp.status_code != 200:
        raise AuthenticationError(f"Sign-in failed: {resp.text}")

    tokens = Tokens()
    _apply_session(tokens, resp.json())
    tokens.save()
    logger.info(f"Signed in as {email}")
    return tokens
