"""socialink exception hierarchy.

All socialink-specific exceptions inherit from SocialinkError, enabling
catch-all handling while supporting specific error types.

Configuration, CSRF and PKCE failures are raised before any request is sent
to the backend. Account errors classify backend responses.
"""

from __future__ import annotations

from typing import Any


class SocialinkError(Exception):
    """Base exception for all socialink errors."""

    def __init__(self, message: str, **context: Any) -> None:
        """Initialize socialink exception.

        Parameters
        ----------
        message : str
            Human-readable error message.
        **context : Any
            Additional context (provider_id, platform, status_code, etc.).
        """
        super().__init__(message)
        self.message = message
        self.context = context

    def __str__(self) -> str:
        """Format exception with context."""
        if self.context:
            ctx = ", ".join(f"{k}={v!r}" for k, v in self.context.items())
            return f"{self.message} ({ctx})"
        return self.message


class ConfigurationError(SocialinkError):
    """Provider configuration is missing or unknown.

    Raised when a provider has no client id or redirect URI configured,
    or when a provider id is not registered. Fails fast with no network call.
    """

    def __init__(self, message: str, provider_id: str | None = None, **context: Any) -> None:
        """Initialize configuration error.

        Parameters
        ----------
        message : str
            Human-readable error message.
        provider_id : str, optional
            The provider whose configuration is incomplete.
        **context : Any
            Additional context.
        """
        super().__init__(message, provider_id=provider_id, **context)
        self.provider_id = provider_id


class OAuthFlowError(SocialinkError):
    """Base exception for failures while resuming an OAuth callback.

    These are handled locally and never reach the backend.
    """

    def __init__(
        self,
        message: str,
        provider: str | None = None,
        flow_id: str | None = None,
        **context: Any,
    ) -> None:
        """Initialize OAuth flow error.

        Parameters
        ----------
        message : str
            Human-readable error message.
        provider : str, optional
            The provider id taken from the callback path.
        flow_id : str, optional
            Identifier of the callback attempt, for log correlation.
        **context : Any
            Additional context.
        """
        super().__init__(message, provider=provider, flow_id=flow_id, **context)
        self.provider = provider
        self.flow_id = flow_id


class ProviderCallbackError(OAuthFlowError):
    """The provider redirected back with an error or without a code."""

    def __init__(
        self,
        message: str,
        error: str | None = None,
        provider: str | None = None,
        flow_id: str | None = None,
        **context: Any,
    ) -> None:
        """Initialize provider callback error.

        Parameters
        ----------
        message : str
            Human-readable error message.
        error : str, optional
            The ``error`` query parameter returned by the provider.
        provider : str, optional
            The provider id.
        flow_id : str, optional
            Identifier of the callback attempt.
        **context : Any
            Additional context.
        """
        super().__init__(message, provider=provider, flow_id=flow_id, error=error, **context)
        self.error = error


class CsrfMismatchError(OAuthFlowError):
    """The state echoed by the provider does not match the issued one.

    Also raised when the state was already consumed (replay).
    """


class PkceVerifierMissingError(OAuthFlowError):
    """No stored PKCE verifier exists for a provider that requires one."""


class AccountError(SocialinkError):
    """Base exception for protected backend account operations."""

    def __init__(
        self,
        message: str,
        platform: str | None = None,
        status_code: int | None = None,
        **context: Any,
    ) -> None:
        """Initialize account error.

        Parameters
        ----------
        message : str
            Human-readable error message (usually the backend ``message``).
        platform : str, optional
            The social platform the request targeted.
        status_code : int, optional
            HTTP status returned by the backend, if any.
        **context : Any
            Additional context.
        """
        super().__init__(message, platform=platform, status_code=status_code, **context)
        self.platform = platform
        self.status_code = status_code


class NotConnectedError(AccountError):
    """The platform has no linked account.

    Not a failure for display purposes; renders an empty/prompt state.
    """


class UnauthenticatedError(AccountError):
    """The session is invalid or expired.

    Raising this invalidates the local session state.
    """


class LoginRequiredError(UnauthenticatedError):
    """No session exists; the request was never sent."""


class TransientFetchError(AccountError):
    """Any other non-success backend response or transport failure.

    Retryable by user action only.
    """
