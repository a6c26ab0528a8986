"""Contract between the list/member object model and the remote service.

Implementations execute named remote operations and return plain records
(dictionaries keyed the way the object model reads them). Failures are raised
as ``MailChimpAPIError`` subclasses carrying a code and a message.

Record layouts:
    list record: id, web_id, name, date_created, email_type_option,
        member_count, unsubscribe_count, cleaned_count, member_count_since_send,
        unsubscribe_count_since_send, cleaned_count_since_send,
        default_from_name, default_from_email, default_subject,
        default_language, list_rating
    member record: id, web_id, email, email_type, status, ip_opt, ip_signup,
        timestamp, info_changed, member_rating, lists, merges
    field definition: name, tag, field_type, required, default, order,
        public, show, size, choices
"""

from abc import ABC, abstractmethod
from collections.abc import Mapping
from typing import Any

RawRecord = dict[str, Any]


class ApiClient(ABC):
    """Named remote operations used by ``ListDirectory``, ``MailingList`` and ``ListMember``."""

    @abstractmethod
    def list_all_lists(self) -> list[RawRecord]:
        """Return every list visible to the credential, in remote order."""

    @abstractmethod
    def fetch_merge_field_schema(self, list_id: str) -> list[RawRecord]:
        """Return the merge field definitions of a list."""

    @abstractmethod
    def fetch_member(self, list_id: str, email: str) -> RawRecord:
        """Return one member record.

        Raises:
            MailChimpNotFoundError: If the address is not on the list.
        """

    @abstractmethod
    def fetch_members(
        self,
        list_id: str,
        status: str,
        since: str | None,
        page_start: int,
        page_limit: int,
    ) -> list[RawRecord]:
        """Return one page of member records with the given status."""

    @abstractmethod
    def subscribe_member(
        self,
        list_id: str,
        email: str,
        merge_fields: Mapping[str, Any],
        email_type: str,
        double_opt_in: bool,
        send_welcome: bool,
    ) -> None:
        """Add a new member to a list."""

    @abstractmethod
    def update_member(
        self,
        list_id: str,
        email: str,
        merge_fields: Mapping[str, Any],
        email_type: str,
    ) -> None:
        """Update an existing member, addressed by ``email``.

        A new address in the ``EMAIL`` merge field renames the member.
        """

    @abstractmethod
    def unsubscribe_member(
        self,
        list_id: str,
        email: str,
        delete: bool,
        send_goodbye: bool,
        notify_admin: bool,
    ) -> None:
        """Unsubscribe a member, removing it entirely when ``delete`` is set."""
