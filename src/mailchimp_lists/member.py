"""List member object with new/existing lifecycle.

A ``ListMember`` is initialized by looking the address up on the list. If the
service knows it, the member is ``EXISTING`` and mirrors the remote record;
otherwise it is a ``NEW`` shell that ``save()`` will subscribe.

Setters never raise for bad input. They append a ``RecordedError`` to
``errors`` and return False, so a caller can run several operations and
inspect the accumulated errors afterwards.
"""

import logging
from collections.abc import Mapping
from enum import Enum
from typing import Any

from mailchimp_lists.api import ApiClient, RawRecord
from mailchimp_lists.exceptions import MailChimpAPIError, MailChimpNotFoundError
from mailchimp_lists.merge_fields import (
    EMAIL_TAG,
    OPT_IN_IP_TAG,
    MergeFieldStore,
    canonical_tag,
    is_alias_tag,
)
from mailchimp_lists.models import (
    SETTABLE_STATUSES,
    VALIDATION_ERROR_CODE,
    EmailType,
    MemberStatus,
    RecordedError,
    to_unix_timestamp,
)

logger = logging.getLogger(__name__)


class MemberState(str, Enum):
    """Whether a member has a remote counterpart."""

    NEW = "new"
    EXISTING = "existing"


class ListMember:
    """One subscriber of a mailing list.

    Example:
        ```python
        member = ListMember(client).initialize("jane@example.com", list_id)
        member.set_first_name("Jane")
        if not member.save(double_opt_in=False):
            print(member.errors)
        ```
    """

    def __init__(self, api: ApiClient) -> None:
        """Create an uninitialized member.

        Args:
            api: Client used for every remote operation of this member.
        """
        self._api = api
        self._list_id: str | None = None
        self._state = MemberState.NEW
        self._data: dict[str, Any] = {}
        self._merges = MergeFieldStore()
        # Address the service knows this member by; None until loaded or saved
        self._remote_email: str | None = None
        self.errors: list[RecordedError] = []

    @classmethod
    def from_record(cls, api: ApiClient, list_id: str, record: Mapping[str, Any]) -> "ListMember":
        """Build an existing member straight from a member record.

        Args:
            api: Client for later remote operations.
            list_id: List the record belongs to.
            record: Member record as returned by ``ApiClient.fetch_member``.

        Returns:
            A member in the ``EXISTING`` state.
        """
        member = cls(api)
        member._list_id = list_id
        member._adopt(record)
        return member

    def __repr__(self) -> str:
        return f"ListMember(email={self.email!r}, list_id={self._list_id!r}, state={self._state.value})"

    # =========================================================================
    # Lifecycle
    # =========================================================================

    def initialize(self, email: str, list_id: str) -> "ListMember":
        """Load the member from the list, or prepare a new one.

        When the address is on the list the member becomes ``EXISTING`` with the
        remote data. Otherwise it becomes ``NEW`` with only the email set and
        the email type defaulted to HTML. Any other remote failure is recorded
        and also yields a ``NEW`` shell.

        Args:
            email: Address to look up.
            list_id: List to look in.

        Returns:
            This member, for chaining.
        """
        self._list_id = list_id
        try:
            record = self._api.fetch_member(list_id, email)
        except MailChimpNotFoundError:
            logger.debug("%s is not on list %s, preparing new member", email, list_id)
            self._reset_as_new(email)
        except MailChimpAPIError as e:
            self._record_remote_error(e)
            self._reset_as_new(email)
        else:
            self._adopt(record)
        return self

    def reload(self) -> "ListMember":
        """Re-read the member from the service.

        An existing member is reloaded by the address the service last
        confirmed (at load or at the last successful save), so an unsaved
        email change is discarded rather than used for the lookup. A new
        member is looked up by its current email.

        Returns:
            This member, for chaining.
        """
        email = self.email if self.is_new else self._identity()
        return self.initialize(email, self._list_id or "")

    def save(self, double_opt_in: bool = True, send_welcome: bool = True) -> bool:
        """Subscribe a new member or update an existing one.

        Status is never sent; only email, email type and merge fields are.

        Args:
            double_opt_in: New members only. Send a confirmation request first.
            send_welcome: New members only. Send the list's welcome email.

        Returns:
            True on success. On failure the error is appended to ``errors``.
        """
        if self._state is MemberState.NEW:
            if not (self._list_id and self.email and self.email_type):
                self._record_error("List id, email and email type must be set before saving a new member.")
                return False
            try:
                self._api.subscribe_member(
                    self._list_id,
                    self.email,
                    self._merges.as_dict(),
                    self.email_type.value,
                    double_opt_in,
                    send_welcome,
                )
            except MailChimpAPIError as e:
                self._record_remote_error(e)
                return False
            self._state = MemberState.EXISTING
            sent_email = self.email
        else:
            if self.email_type is None:
                self._record_error("Email type must be set before saving.")
                return False
            identity = self._identity()
            merges = self._merges.as_dict()
            try:
                self._api.update_member(
                    self._list_id or "",
                    identity,
                    merges,
                    self.email_type.value,
                )
            except MailChimpAPIError as e:
                self._record_remote_error(e)
                return False
            # The service renames the member to the EMAIL field when present
            sent_email = merges.get(EMAIL_TAG) or identity

        self._remote_email = sent_email
        return True

    def unsubscribe(self, send_goodbye: bool = True, notify_admin: bool = True) -> bool:
        """Mark the member unsubscribed; the record stays on the list.

        Returns:
            True on success.
        """
        return self._unsubscribe(delete=False, send_goodbye=send_goodbye, notify_admin=notify_admin)

    def delete(self) -> bool:
        """Remove the member from the list. Never emails the member or the admin.

        Returns:
            True on success.
        """
        return self._unsubscribe(delete=True, send_goodbye=False, notify_admin=False)

    def _unsubscribe(self, delete: bool, send_goodbye: bool, notify_admin: bool) -> bool:
        try:
            self._api.unsubscribe_member(
                self._list_id or "",
                self._identity(),
                delete,
                send_goodbye,
                notify_admin,
            )
        except MailChimpAPIError as e:
            self._record_remote_error(e)
            return False
        return True

    def _adopt(self, record: Mapping[str, Any]) -> None:
        self._data = {key: value for key, value in record.items() if key != "merges"}
        self._merges = MergeFieldStore(record.get("merges") or {})
        email = self._data.get("email") or ""
        if email and EMAIL_TAG not in self._merges:
            self._merges.set_email(email)
        self._remote_email = email or None
        self._state = MemberState.EXISTING

    def _reset_as_new(self, email: str) -> None:
        self._data = {}
        self._merges = MergeFieldStore()
        self._remote_email = None
        self._state = MemberState.NEW
        self.set_email(email)
        self.set_email_type(EmailType.HTML)

    def _identity(self) -> str:
        return self._remote_email or self.email

    def _record_error(self, message: str, code: int | str | None = VALIDATION_ERROR_CODE) -> None:
        error = RecordedError(code=code, message=message)
        logger.warning("Member %s: %s", self.email or "<unset>", error)
        self.errors.append(error)

    def _record_remote_error(self, error: MailChimpAPIError) -> None:
        self._record_error(error.message, code=error.code)

    # =========================================================================
    # State
    # =========================================================================

    @property
    def state(self) -> MemberState:
        return self._state

    @property
    def is_new(self) -> bool:
        """True until the member is loaded from or saved to the service."""
        return self._state is MemberState.NEW

    @property
    def id(self) -> str | int:
        """Unique member id, or 0 when the member has none yet."""
        return self._data.get("id") or 0

    @property
    def web_id(self) -> int:
        """Numeric id for links into the web UI, or 0."""
        return self._data.get("web_id") or 0

    @property
    def list_id(self) -> str | None:
        return self._list_id

    @property
    def email(self) -> str:
        return self._data.get("email") or ""

    def set_email(self, email: str) -> bool:
        """Set the email address; the ``EMAIL`` merge field follows it."""
        if not isinstance(email, str) or not email.strip():
            self._record_error(f"Invalid email address {email!r}.")
            return False
        self._data["email"] = email
        self._merges.set_email(email)
        return True

    @property
    def email_type(self) -> EmailType | None:
        """Preferred email format, or None if unset or unrecognised."""
        value = self._data.get("email_type")
        try:
            return EmailType(value) if value else None
        except ValueError:
            return None

    def set_email_type(self, email_type: EmailType | str) -> bool:
        """Set the preferred email format: html, text or mobile.

        An invalid value keeps the current format and records an error.
        """
        try:
            value = EmailType(email_type)
        except ValueError:
            self._record_error(f"Invalid email type {email_type}.")
            return False
        self._data["email_type"] = value.value
        return True

    @property
    def status(self) -> MemberStatus | None:
        value = self._data.get("status")
        try:
            return MemberStatus(value) if value else None
        except ValueError:
            return None

    def set_status(self, status: MemberStatus | str) -> bool:
        """Set the subscription status: subscribed, unsubscribed or cleaned.

        ``updated`` is read-only. The status is local only and is not sent by
        ``save()``.
        """
        try:
            value = MemberStatus(status)
        except ValueError:
            value = None
        if value not in SETTABLE_STATUSES:
            self._record_error(
                f"Invalid status {status}. Must be either subscribed, unsubscribed or cleaned."
            )
            return False
        self._data["status"] = value.value
        return True

    @property
    def opt_in_ip(self) -> str:
        return self._data.get("ip_opt") or self._merges.get(OPT_IN_IP_TAG) or ""

    def set_opt_in_ip(self, ip: str) -> bool:
        """Set the opt-in IP. Only allowed before the member is first saved."""
        if not self.is_new:
            self._record_error("Cannot (re)set opt-in IP when editing a member.")
            return False
        self._data["ip_opt"] = ip
        self._merges.set_opt_in_ip(ip)
        return True

    @property
    def signup_ip(self) -> str:
        return self._data.get("ip_signup") or ""

    @property
    def member_rating(self) -> int:
        """Rating of the subscriber from 1 to 5, or 0 if not rated."""
        return int(self._data.get("member_rating") or 0)

    def get_info_changed(self, in_seconds: bool = True) -> int | str:
        """Last time the record changed, as a unix timestamp or the raw string.

        Returns 0 when the service reports no change date.
        """
        value = self._data.get("info_changed")
        if not value:
            return 0
        return to_unix_timestamp(value) if in_seconds else value

    def get_timestamp(self, in_seconds: bool = True) -> int | str:
        """When the member was added to the list, as a unix timestamp or the raw string."""
        value = self._data.get("timestamp")
        if not value:
            return 0
        return to_unix_timestamp(value) if in_seconds else value

    @property
    def lists(self) -> dict[str, str]:
        """Other lists this member is on, mapping list id to status there."""
        return dict(self._data.get("lists") or {})

    # =========================================================================
    # Merge Fields
    # =========================================================================

    @property
    def merge_fields(self) -> dict[str, Any]:
        return self._merges.as_dict()

    def get_merge_field(self, tag: str, default: Any = None) -> Any:
        """Get one merge field by tag (case-insensitive), or ``default``."""
        return self._merges.get(tag, default)

    def set_merge_field(self, tag: str, value: Any) -> bool:
        """Set one merge field.

        A new member accepts any tag; an existing member only tags it already
        has. ``EMAIL`` and ``OPTINIP`` go through ``set_email`` and
        ``set_opt_in_ip``.

        Returns:
            False if the field could not be set.
        """
        key = canonical_tag(tag)
        if key == EMAIL_TAG:
            return self.set_email(value)
        if key == OPT_IN_IP_TAG:
            return self.set_opt_in_ip(value)
        if is_alias_tag(key):
            return False
        if self.is_new or key in self._merges:
            return self._merges.set(key, value)
        return False

    def set_merge_fields(self, fields: Mapping[str, Any], merge_with_existing: bool = False) -> bool:
        """Set many merge fields at once.

        Tags are upper-cased. By default the whole field set is replaced; with
        ``merge_with_existing`` the new values are laid over the current ones.

        ``EMAIL`` and ``OPTINIP`` follow the same rules as ``set_email`` and
        ``set_opt_in_ip``. A replace keeps the member's email, and an opt-in IP
        given for an existing member is dropped with one recorded error while
        the other fields are still applied.

        Args:
            fields: Mapping of tag to value.
            merge_with_existing: Keep fields not present in ``fields``.

        Returns:
            True if every field was applied. False if ``fields`` is not a
            mapping or its email is invalid (nothing is changed), or if an
            opt-in IP was dropped.
        """
        if not isinstance(fields, Mapping):
            self._record_error("Invalid value for merge fields. Can only be a mapping.")
            return False

        incoming = {canonical_tag(tag): value for tag, value in fields.items()}
        has_email = EMAIL_TAG in incoming
        email = incoming.pop(EMAIL_TAG, None)
        has_opt_in_ip = OPT_IN_IP_TAG in incoming
        opt_in_ip = incoming.pop(OPT_IN_IP_TAG, None)
        if has_email and (not isinstance(email, str) or not email.strip()):
            self._record_error(f"Invalid email address {email!r}.")
            return False

        kept_opt_in_ip = self._merges.get(OPT_IN_IP_TAG) if self.is_new else None
        if merge_with_existing:
            self._merges.update(incoming)
        else:
            self._merges.replace(incoming)

        if has_email:
            self.set_email(email)
        elif self.email:
            self._merges.set_email(self.email)

        if has_opt_in_ip:
            return self.set_opt_in_ip(opt_in_ip)
        if kept_opt_in_ip and not merge_with_existing:
            self._merges.set_opt_in_ip(kept_opt_in_ip)
        return True

    @property
    def first_name(self) -> Any:
        return self._merges.get("FNAME")

    def set_first_name(self, name: str) -> bool:
        return self.set_merge_field("FNAME", name)

    @property
    def last_name(self) -> Any:
        return self._merges.get("LNAME")

    def set_last_name(self, name: str) -> bool:
        return self.set_merge_field("LNAME", name)

    @property
    def member_id(self) -> Any:
        return self._merges.get("MID")

    @property
    def referral_id(self) -> Any:
        return self._merges.get("RID")

    @property
    def title(self) -> Any:
        return self._merges.get("NAME_TITLE")

    @property
    def initials(self) -> Any:
        return self._merges.get("NAME_INITI")

    @property
    def middle_name(self) -> Any:
        return self._merges.get("NAME_MIDDL")

    @property
    def street(self) -> Any:
        return self._merges.get("ADRESS_STR")

    @property
    def house_number(self) -> Any:
        return self._merges.get("ADRESS_NR")

    @property
    def zip_code(self) -> Any:
        return self._merges.get("ADRESS_ZIP")

    @property
    def city(self) -> Any:
        return self._merges.get("ADRESS_CIT")

    def to_record(self) -> RawRecord:
        """Return the member as a record in the ``ApiClient`` layout."""
        return {**self._data, "merges": self._merges.as_dict()}
