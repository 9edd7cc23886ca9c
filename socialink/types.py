"""Type definitions shared across socialink components."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Literal, Union

from pydantic import BaseModel, ConfigDict, Field

from .exceptions import SocialinkError


UserType = Literal["BRAND", "INFLUENCER", "ADMIN"]


class SessionScheme(str, Enum):
    """Available session schemes. Exactly one is active per deployment."""

    COOKIE = "cookie"
    BEARER = "bearer"


@dataclass(frozen=True)
class BearerToken:
    """Session held as a client-readable bearer token."""

    value: str | None


@dataclass(frozen=True)
class CookiePresence:
    """Session held as an opaque cookie; only its presence is observable."""

    present: bool


Session = Union[BearerToken, CookiePresence]


class AccountSnapshot(BaseModel):
    """Normalized read model of a linked social account.

    Attributes
    ----------
    platform : str
        The platform the account belongs to.
    profile_name : str
        Display name of the linked profile (backend key ``profileName``).
    followers_count : int
        Followers or page likes (backend key ``followersCount``).
    last_synced_at : datetime or None
        When the backend last synced the account (backend key ``lastSynced``).
    """

    model_config = ConfigDict(frozen=True, populate_by_name=True, extra="ignore")

    platform: str
    profile_name: str = Field(default="", alias="profileName")
    followers_count: int = Field(default=0, alias="followersCount")
    last_synced_at: datetime | None = Field(default=None, alias="lastSynced")

    @property
    def display_name(self) -> str:
        """Profile name, falling back to the platform name."""
        return self.profile_name or self.platform


@dataclass(frozen=True)
class NotConnected:
    """Probe result for a platform with no linked account."""

    platform: str
    message: str = ""


@dataclass(frozen=True)
class SyncAcknowledgement:
    """Result of a successful resync request.

    The backend gives no payload guarantee; ``payload`` holds whatever JSON
    object came back, or an empty dict.
    """

    platform: str
    payload: dict[str, Any] = field(default_factory=dict)


ProbeResult = Union[AccountSnapshot, NotConnected, SocialinkError]


@dataclass
class ProbeBatch:
    """Snapshot probes for several platforms, tagged with a refresh generation."""

    generation: int
    results: dict[str, ProbeResult] = field(default_factory=dict)

    @property
    def snapshots(self) -> dict[str, AccountSnapshot]:
        """Only the platforms that returned a snapshot."""
        return {k: v for k, v in self.results.items() if isinstance(v, AccountSnapshot)}


class CallbackState(str, Enum):
    """State of an OAuth callback reconciliation."""

    START = "start"
    VALIDATED = "validated"
    RESOLVED = "resolved"
    REJECTED = "rejected"


@dataclass
class CallbackOutcome:
    """Result of resuming an OAuth callback.

    Attributes
    ----------
    state : CallbackState
        Terminal state reached (RESOLVED on success).
    provider_id : str or None
        Provider taken from the callback path.
    redirect_url : str or None
        Where the navigator was sent: the backend callback endpoint on
        success, the home URL on rejection.
    error : str or None
        Error message when rejected.
    """

    state: CallbackState
    provider_id: str | None = None
    redirect_url: str | None = None
    error: str | None = None
