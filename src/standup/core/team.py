"""Pure team directory logic (users and clients) - no I/O dependencies."""

from dataclasses import dataclass, replace

AVATAR_URL = "https://api.dicebear.com/7.x/initials/svg?seed={seed}"


@dataclass
class Client:
    """A client tag that card items are logged against."""

    id: str
    name: str
    tag: str
    emoji: str = ""
    color: str = ""

    def label(self) -> str:
        return f"{self.emoji} {self.tag}".strip()

    @classmethod
    def from_row(cls, data: dict) -> "Client":
        return cls(
            id=data["id"],
            name=data.get("name", ""),
            tag=data.get("tag", ""),
            emoji=data.get("emoji", "") or "",
            color=data.get("color", "") or "",
        )

    def to_row(self) -> dict:
        row = {"name": self.name, "tag": self.tag, "emoji": self.emoji, "color": self.color}
        if self.id:
            row["id"] = self.id
        return row


@dataclass
class User:
    """A team member."""

    id: str
    name: str
    avatar: str = ""
    default_client_id: str | None = None

    @classmethod
    def from_row(cls, data: dict) -> "User":
        return cls(
            id=data["id"],
            name=data.get("name", ""),
            avatar=data.get("avatar", "") or "",
            default_client_id=data.get("default_client_id"),
        )

    def to_row(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "avatar": self.avatar,
            "default_client_id": self.default_client_id,
        }


def default_avatar(user_id: str) -> str:
    """Initials avatar URL for a newly created user."""
    return AVATAR_URL.format(seed=user_id)


def normalize_client(client: Client) -> Client:
    """Upper-case and strip the tag, strip the name. Raises ValueError if either is empty."""
    name = client.name.strip()
    tag = client.tag.strip().upper()
    if not name:
        raise ValueError("Client name must not be empty")
    if not tag:
        raise ValueError("Client tag must not be empty")
    return replace(client, name=name, tag=tag)


def find_duplicate_tag(clients: list[Client], tag: str) -> Client | None:
    """Return the existing client with the same tag (case-insensitive), if any."""
    wanted = tag.strip().upper()
    return next((c for c in clients if c.tag.upper() == wanted), None)
