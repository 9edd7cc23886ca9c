"""PKCE (Proof Key for Code Exchange) implementation.

RFC 7636 - Proof Key for Code Exchange for OAuth 2.0 public clients.
Uses S256 challenge method (SHA-256 hash of the code verifier).

The verifier is 32 random bytes, base64url-encoded without padding.
Persisting the verifier is the caller's job, under the key returned by
:func:`verifier_storage_key`.
"""

from __future__ import annotations

import hashlib
import secrets

from base64 import urlsafe_b64encode
from collections.abc import Callable
from dataclasses import dataclass


VERIFIER_BYTES = 32
VERIFIER_KEY_PREFIX = "pkce_verifier"


def _b64url(data: bytes) -> str:
    return urlsafe_b64encode(data).rstrip(b"=").decode("ascii")


def compute_challenge(verifier: str) -> str:
    """Return base64url(SHA-256(verifier)) without padding."""
    return _b64url(hashlib.sha256(verifier.encode("ascii")).digest())


def verifier_storage_key(provider_id: str) -> str:
    """Storage key holding the pending verifier for ``provider_id``."""
    return f"{VERIFIER_KEY_PREFIX}:{provider_id}"


@dataclass(frozen=True)
class PKCEChallenge:
    """PKCE code verifier and challenge pair.

    Attributes
    ----------
    verifier : str
        The code verifier (base64url of 32 random bytes).
    challenge : str
        The code challenge (base64url-encoded SHA-256 hash of verifier).
    method : str
        The challenge method, always "S256".
    """

    verifier: str
    challenge: str
    method: str = "S256"

    @classmethod
    def generate(cls, random_bytes: Callable[[int], bytes] = secrets.token_bytes) -> PKCEChallenge:
        """Generate a new PKCE code verifier and challenge.

        Parameters
        ----------
        random_bytes : callable
            Source of randomness, called with the number of bytes wanted.
            Defaults to ``secrets.token_bytes``; tests may pass a seeded
            generator.

        Returns
        -------
        PKCEChallenge
            A new PKCE challenge pair.
        """
        raw = random_bytes(VERIFIER_BYTES)
        if len(raw) != VERIFIER_BYTES:
            msg = f"Random source returned {len(raw)} bytes, expected {VERIFIER_BYTES}"
            raise ValueError(msg)
        verifier = _b64url(raw)
        return cls(verifier=verifier, challenge=compute_challenge(verifier))
