"""Mailchimp API client backed by the Marketing REST API (v3).

Implements ``ApiClient`` with ``requests`` and translates v3 payloads into the
record layout the list and member objects read.
"""

import hashlib
import logging
from collections.abc import Mapping
from typing import Any

import requests

from mailchimp_lists.api import ApiClient, RawRecord
from mailchimp_lists.exceptions import (
    MailChimpAPIError,
    MailChimpAuthError,
    MailChimpConflictError,
    MailChimpNotFoundError,
    MailChimpRateLimitError,
    MailChimpValidationError,
)
from mailchimp_lists.settings import MailChimpSettings, get_mailchimp_settings

logger = logging.getLogger(__name__)

# Largest page size the v3 collection endpoints accept
COLLECTION_PAGE_SIZE = 1000


def subscriber_hash(email: str) -> str:
    """Return the v3 member identifier: MD5 of the lowercased address."""
    # MD5 mandated by the API for member addressing, not used for security
    return hashlib.md5(email.lower().encode(), usedforsecurity=False).hexdigest()


def _since_as_iso(since: str) -> str:
    """Turn ``YYYY-MM-DD HH:MM:SS`` (UTC) into the ISO 8601 form v3 expects."""
    if "T" in since:
        return since
    return since.replace(" ", "T") + "+00:00"


class MailChimpAPIClient(ApiClient):
    """Client for Mailchimp list and member operations.

    Example:
        ```python
        client = MailChimpAPIClient()

        # All lists on the account
        lists = client.list_all_lists()

        # Look up one member
        record = client.fetch_member(lists[0]["id"], "jane@example.com")
        ```
    """

    def __init__(
        self,
        settings: MailChimpSettings | None = None,
    ) -> None:
        """Initialize the Mailchimp API client.

        Args:
            settings: Optional settings. If not provided, reads from environment.
        """
        self.settings = settings or get_mailchimp_settings()
        self._base_url = self.settings.base_url
        self._session = requests.Session()
        self._session.auth = ("anystring", self.settings.get_api_key_value())
        self._session.headers.update(
            {
                "Content-Type": "application/json",
                "User-Agent": "mailchimp-lists/0.1.0",
            }
        )

        logger.info(
            "Initialized Mailchimp API client for data center %s",
            self.settings.mailchimp_server_prefix,
        )

    def _handle_api_error(self, response: requests.Response) -> None:
        """Convert an error response into our custom exceptions.

        Args:
            response: Non-2xx response from the API.

        Raises:
            MailChimpAuthError: For authentication failures.
            MailChimpRateLimitError: For rate limit errors.
            MailChimpNotFoundError: For missing resources.
            MailChimpConflictError: For members that already exist.
            MailChimpValidationError: For invalid requests.
            MailChimpAPIError: For other API errors.
        """
        try:
            body = response.json()
        except ValueError:
            body = {}
        if not isinstance(body, dict):
            body = {}

        title = body.get("title") or response.reason or "Mailchimp API error"
        detail = body.get("detail")
        message = f"{title}: {detail}" if detail else str(title)
        errors = body.get("errors") or []
        status = response.status_code

        if status in (401, 403):
            raise MailChimpAuthError(message, code=status, response=body)

        if status == 429:
            retry_after = response.headers.get("Retry-After")
            raise MailChimpRateLimitError(
                message,
                retry_after=int(retry_after) if retry_after and retry_after.isdigit() else None,
                code=status,
                response=body,
            )

        if status == 404:
            raise MailChimpNotFoundError(message, code=status, response=body)

        if status == 400:
            if str(title).lower() == "member exists":
                raise MailChimpConflictError(message, code=status, response=body)
            field = errors[0].get("field") if errors else None
            raise MailChimpValidationError(
                message, field=field, code=status, errors=errors, response=body
            )

        raise MailChimpAPIError(message, code=status, errors=errors, response=body)

    def _request(
        self,
        method: str,
        path: str,
        params: dict[str, Any] | None = None,
        json: dict[str, Any] | None = None,
    ) -> dict[str, Any]:
        """Send one request and return the decoded body.

        Raises:
            MailChimpAPIError: If the request fails or returns an error status.
        """
        try:
            response = self._session.request(
                method,
                f"{self._base_url}{path}",
                params=params,
                json=json,
                timeout=self.settings.request_timeout,
            )
        except requests.RequestException as e:
            msg = f"Connection error: {e}"
            raise MailChimpAPIError(msg) from e

        if not response.ok:
            self._handle_api_error(response)

        if response.status_code == 204 or not response.content:
            return {}
        return response.json()

    # =========================================================================
    # Record Translation
    # =========================================================================

    @staticmethod
    def _to_list_record(item: dict[str, Any]) -> RawRecord:
        stats = item.get("stats") or {}
        defaults = item.get("campaign_defaults") or {}
        return {
            "id": item["id"],
            "web_id": item.get("web_id") or 0,
            "name": item.get("name", ""),
            "date_created": item.get("date_created"),
            "email_type_option": bool(item.get("email_type_option", False)),
            "member_count": stats.get("member_count", 0),
            "unsubscribe_count": stats.get("unsubscribe_count", 0),
            "cleaned_count": stats.get("cleaned_count", 0),
            "member_count_since_send": stats.get("member_count_since_send", 0),
            "unsubscribe_count_since_send": stats.get("unsubscribe_count_since_send", 0),
            "cleaned_count_since_send": stats.get("cleaned_count_since_send", 0),
            "default_from_name": defaults.get("from_name", ""),
            "default_from_email": defaults.get("from_email", ""),
            "default_subject": defaults.get("subject", ""),
            "default_language": defaults.get("language", ""),
            "list_rating": item.get("list_rating", 0),
        }

    @staticmethod
    def _to_member_record(item: dict[str, Any]) -> RawRecord:
        merges = dict(item.get("merge_fields") or {})
        email = item.get("email_address", "")
        merges.setdefault("EMAIL", email)
        return {
            "id": item.get("id"),
            "web_id": item.get("web_id") or 0,
            "email": email,
            "email_type": item.get("email_type"),
            "status": item.get("status"),
            "ip_opt": item.get("ip_opt", ""),
            "ip_signup": item.get("ip_signup", ""),
            "timestamp": item.get("timestamp_signup") or item.get("timestamp_opt"),
            "info_changed": item.get("last_changed"),
            "member_rating": item.get("member_rating", 0),
            "lists": {},
            "merges": merges,
        }

    @staticmethod
    def _to_field_definition(item: dict[str, Any]) -> RawRecord:
        options = item.get("options") or {}
        return {
            "name": item.get("name", ""),
            "tag": item.get("tag", ""),
            "field_type": item.get("type", "text"),
            "required": bool(item.get("required", False)),
            "default": item.get("default_value") or None,
            "order": item.get("display_order", 0),
            "public": bool(item.get("public", True)),
            "show": True,
            "size": str(options["size"]) if options.get("size") is not None else None,
            "choices": list(options.get("choices") or []),
        }

    @staticmethod
    def _outgoing_merge_fields(merge_fields: Mapping[str, Any]) -> dict[str, Any]:
        # EMAIL and OPTINIP travel as top-level member properties in v3
        return {
            tag: value
            for tag, value in merge_fields.items()
            if tag not in ("EMAIL", "OPTINIP")
        }

    # =========================================================================
    # List Operations
    # =========================================================================

    def list_all_lists(self) -> list[RawRecord]:
        """List every list on the account, following v3 paging.

        Returns:
            List records in remote order.

        Raises:
            MailChimpAPIError: If the API request fails.
        """
        records: list[RawRecord] = []
        offset = 0
        while True:
            data = self._request(
                "GET",
                "/lists",
                params={"count": COLLECTION_PAGE_SIZE, "offset": offset},
            )
            page = data.get("lists", [])
            records.extend(self._to_list_record(item) for item in page)
            offset += len(page)
            if not page or offset >= data.get("total_items", 0):
                break
        logger.debug("Listed %d lists", len(records))
        return records

    def fetch_merge_field_schema(self, list_id: str) -> list[RawRecord]:
        """Get the merge field definitions of a list.

        Raises:
            MailChimpNotFoundError: If the list doesn't exist.
            MailChimpAPIError: If the API request fails.
        """
        data = self._request(
            "GET",
            f"/lists/{list_id}/merge-fields",
            params={"count": COLLECTION_PAGE_SIZE},
        )
        fields = [self._to_field_definition(item) for item in data.get("merge_fields", [])]
        logger.debug("Retrieved %d merge fields for list %s", len(fields), list_id)
        return fields

    # =========================================================================
    # Member Operations
    # =========================================================================

    def fetch_member(self, list_id: str, email: str) -> RawRecord:
        """Get one member of a list by email address.

        Raises:
            MailChimpNotFoundError: If the address is not on the list.
            MailChimpAPIError: If the API request fails.
        """
        try:
            data = self._request("GET", f"/lists/{list_id}/members/{subscriber_hash(email)}")
        except MailChimpNotFoundError as e:
            e.resource_type = "member"
            e.resource_id = email
            raise
        return self._to_member_record(data)

    def fetch_members(
        self,
        list_id: str,
        status: str,
        since: str | None,
        page_start: int,
        page_limit: int,
    ) -> list[RawRecord]:
        """Get one page of members with the given status.

        ``page_start`` is a page number; the v3 offset is derived from it.
        """
        params: dict[str, Any] = {
            "status": status,
            "count": page_limit,
            "offset": page_start * page_limit,
        }
        if since:
            params["since_last_changed"] = _since_as_iso(since)
        data = self._request("GET", f"/lists/{list_id}/members", params=params)
        members = [self._to_member_record(item) for item in data.get("members", [])]
        logger.debug(
            "Retrieved %d %s members from list %s (page %d)",
            len(members),
            status,
            list_id,
            page_start,
        )
        return members

    def subscribe_member(
        self,
        list_id: str,
        email: str,
        merge_fields: Mapping[str, Any],
        email_type: str,
        double_opt_in: bool,
        send_welcome: bool,
    ) -> None:
        """Add a new member; double opt-in leaves it pending confirmation.

        Raises:
            MailChimpConflictError: If the address is already a member.
            MailChimpValidationError: If the member data is rejected.
            MailChimpAPIError: If the API request fails.
        """
        body: dict[str, Any] = {
            "email_address": email,
            "email_type": email_type,
            "status": "pending" if double_opt_in else "subscribed",
            "merge_fields": self._outgoing_merge_fields(merge_fields),
        }
        if merge_fields.get("OPTINIP"):
            body["ip_opt"] = merge_fields["OPTINIP"]
        if not send_welcome:
            # v3 sends the welcome email based on list settings only
            logger.debug("send_welcome=False has no v3 equivalent for %s", email)
        self._request("POST", f"/lists/{list_id}/members", json=body)
        logger.info("Subscribed %s to list %s", email, list_id)

    def update_member(
        self,
        list_id: str,
        email: str,
        merge_fields: Mapping[str, Any],
        email_type: str,
    ) -> None:
        """Update an existing member.

        Raises:
            MailChimpNotFoundError: If the address is not on the list.
            MailChimpAPIError: If the API request fails.
        """
        body: dict[str, Any] = {
            "email_address": merge_fields.get("EMAIL") or email,
            "email_type": email_type,
            "merge_fields": self._outgoing_merge_fields(merge_fields),
        }
        self._request("PATCH", f"/lists/{list_id}/members/{subscriber_hash(email)}", json=body)
        logger.info("Updated member %s on list %s", email, list_id)

    def unsubscribe_member(
        self,
        list_id: str,
        email: str,
        delete: bool,
        send_goodbye: bool,
        notify_admin: bool,
    ) -> None:
        """Unsubscribe a member, or archive it when ``delete`` is set.

        Raises:
            MailChimpNotFoundError: If the address is not on the list.
            MailChimpAPIError: If the API request fails.
        """
        path = f"/lists/{list_id}/members/{subscriber_hash(email)}"
        if delete:
            self._request("DELETE", path)
            logger.info("Deleted member %s from list %s", email, list_id)
            return

        # Goodbye and admin notifications follow list settings in v3
        logger.debug(
            "Unsubscribing %s (send_goodbye=%s, notify_admin=%s)",
            email,
            send_goodbye,
            notify_admin,
        )
        self._request("PATCH", path, json={"status": "unsubscribed"})
        logger.info("Unsubscribed %s from list %s", email, list_id)
