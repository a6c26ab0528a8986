"""Exceptions raised by the Mailchimp transport.

``ListMember`` and ``MailingList`` catch these and keep them as recorded
errors; ``ListDirectory.list_all`` lets them through.
"""

from typing import Any


class MailChimpAPIError(Exception):
    """A remote call to Mailchimp failed.

    Attributes:
        message: Human-readable reason, usually ``"<title>: <detail>"`` from the
            problem document
        code: HTTP status of the failed call, or None for transport failures
        errors: Per-field problems the service listed, each a dict with
            ``field`` and ``message``
        response: Decoded problem document, when the body was JSON
    """

    def __init__(
        self,
        message: str,
        code: int | str | None = None,
        errors: list[dict[str, Any]] | None = None,
        response: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.code = code
        self.errors = errors or []
        self.response = response

    def __str__(self) -> str:
        parts = [self.message]
        if self.code:
            parts.append(f"(code: {self.code})")
        if self.errors:
            error_msgs = [e.get("message", str(e)) for e in self.errors]
            parts.append(f"Details: {'; '.join(error_msgs)}")
        return " ".join(parts)


RemoteError = MailChimpAPIError


class MailChimpAuthError(MailChimpAPIError):
    """The API key was rejected (401) or may not touch this account (403)."""


class MailChimpRateLimitError(MailChimpAPIError):
    """Too many simultaneous connections (429).

    Attributes:
        retry_after: Value of the ``Retry-After`` header in seconds, if sent
    """

    def __init__(
        self,
        message: str = "Rate limit exceeded",
        retry_after: int | None = None,
        **kwargs: Any,
    ) -> None:
        super().__init__(message, **kwargs)
        self.retry_after = retry_after


class MailChimpNotFoundError(MailChimpAPIError):
    """The list or member addressed by the call does not exist (404).

    Attributes:
        resource_type: ``"list"`` or ``"member"``
        resource_id: List id or email address that was looked up
    """

    def __init__(
        self,
        message: str,
        resource_type: str | None = None,
        resource_id: str | None = None,
        **kwargs: Any,
    ) -> None:
        super().__init__(message, **kwargs)
        self.resource_type = resource_type
        self.resource_id = resource_id


class MailChimpValidationError(MailChimpAPIError):
    """The service refused the request body (400).

    Attributes:
        field: First field named in the problem document's ``errors``
    """

    def __init__(
        self,
        message: str,
        field: str | None = None,
        **kwargs: Any,
    ) -> None:
        super().__init__(message, **kwargs)
        self.field = field


class MailChimpConflictError(MailChimpAPIError):
    """Subscribe was called for an address already on the list ("Member Exists")."""
