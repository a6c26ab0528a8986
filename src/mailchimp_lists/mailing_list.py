"""Mailing list snapshot and member lookup."""

import logging
from collections.abc import Mapping
from typing import Any

from mailchimp_lists.api import ApiClient, RawRecord
from mailchimp_lists.exceptions import MailChimpAPIError
from mailchimp_lists.member import ListMember
from mailchimp_lists.models import (
    ListSnapshot,
    MemberFilter,
    MergeFieldDefinition,
    RecordedError,
    to_unix_timestamp,
)

logger = logging.getLogger(__name__)

NOT_FOUND_CODE = "NOT_FOUND"

_EMPTY_SNAPSHOT = ListSnapshot(id="")


class MailingList:
    """Read-only view of one mailing list and factory for its members.

    The metadata is a snapshot taken when the list was fetched. It is only
    replaced as a whole, by ``load_by_id`` or ``refresh``.

    Example:
        ```python
        mailing_list = MailingList(client).load_by_id("a1b2c3")
        if mailing_list.not_found:
            ...
        for member in mailing_list.get_members(MemberFilter(page_limit=100), as_objects=True):
            print(member.email, member.first_name)
        ```
    """

    def __init__(self, api: ApiClient, record: Mapping[str, Any] | None = None) -> None:
        """Create a list, optionally from a list record.

        Args:
            api: Client for remote operations.
            record: List record as returned by ``ApiClient.list_all_lists``.
        """
        self._api = api
        self._snapshot = ListSnapshot.model_validate(dict(record)) if record else _EMPTY_SNAPSHOT
        self.not_found = False
        self.errors: list[RecordedError] = []

    def __repr__(self) -> str:
        return f"MailingList(id={self.id!r}, name={self.name!r})"

    def _record_error(self, message: str, code: int | str | None) -> None:
        error = RecordedError(code=code, message=message)
        logger.warning("List %s: %s", self.id or "<unloaded>", error)
        self.errors.append(error)

    def load_by_id(self, list_id: str) -> "MailingList":
        """Load the list with ``list_id`` from the lists on the account.

        If no list matches, ``not_found`` is set, an error is recorded and the
        list is left empty but usable.

        Returns:
            This list, for chaining.
        """
        try:
            records = self._api.list_all_lists()
        except MailChimpAPIError as e:
            self._record_error(e.message, e.code)
            return self

        for record in records:
            if record.get("id") == list_id:
                self._snapshot = ListSnapshot.model_validate(record)
                self.not_found = False
                logger.debug("Loaded list %s (%s)", list_id, self._snapshot.name)
                return self

        self._snapshot = _EMPTY_SNAPSHOT
        self.not_found = True
        self._record_error(f"List not found (id: {list_id}).", NOT_FOUND_CODE)
        return self

    def refresh(self) -> bool:
        """Replace the snapshot with the current remote data.

        Returns:
            True if the list was found again.
        """
        if not self.id:
            self._record_error("Cannot refresh a list that was never loaded.", NOT_FOUND_CODE)
            return False
        errors_before = len(self.errors)
        self.load_by_id(self.id)
        return len(self.errors) == errors_before

    # =========================================================================
    # Snapshot Accessors
    # =========================================================================

    @property
    def snapshot(self) -> ListSnapshot:
        return self._snapshot

    @property
    def id(self) -> str:
        return self._snapshot.id

    @property
    def web_id(self) -> int:
        return self._snapshot.web_id

    @property
    def name(self) -> str:
        return self._snapshot.name

    @property
    def date_created(self) -> int:
        """Creation date of the list as a unix timestamp (0 if unknown)."""
        return to_unix_timestamp(self._snapshot.date_created)

    def get_member_count(self, since_send: bool = False) -> int:
        """Number of active members, optionally since the last campaign was sent."""
        if since_send:
            return self._snapshot.member_count_since_send
        return self._snapshot.member_count

    def get_unsubscribe_count(self, since_send: bool = False) -> int:
        if since_send:
            return self._snapshot.unsubscribe_count_since_send
        return self._snapshot.unsubscribe_count

    def get_cleaned_count(self, since_send: bool = False) -> int:
        if since_send:
            return self._snapshot.cleaned_count_since_send
        return self._snapshot.cleaned_count

    @property
    def email_type_option(self) -> bool:
        """Whether members may choose a format or the list is HTML only."""
        return self._snapshot.email_type_option

    @property
    def default_from_name(self) -> str:
        return self._snapshot.default_from_name

    @property
    def default_from_email(self) -> str:
        return self._snapshot.default_from_email

    @property
    def default_subject(self) -> str:
        return self._snapshot.default_subject

    @property
    def default_language(self) -> str:
        return self._snapshot.default_language

    @property
    def list_rating(self) -> float:
        """Auto-generated activity score of the list (0 - 5)."""
        return self._snapshot.list_rating

    # =========================================================================
    # Members
    # =========================================================================

    def get_member(self, email: str) -> ListMember:
        """Look up ``email`` on this list; unknown addresses give a new member."""
        return ListMember(self._api).initialize(email, self.id)

    def get_members(
        self,
        member_filter: MemberFilter | None = None,
        as_objects: bool = False,
    ) -> list[ListMember] | list[RawRecord]:
        """Get one page of members of this list.

        With ``as_objects`` every record is expanded into a fully loaded
        ``ListMember`` through one extra lookup per member. A failed lookup
        is recorded on that member and does not stop the others.

        Args:
            member_filter: Status, change date and paging. Defaults to the
                first 25 subscribed members.
            as_objects: Return ``ListMember`` objects instead of raw records.

        Returns:
            Members in remote order, or an empty list if the request failed.
        """
        member_filter = member_filter or MemberFilter()
        try:
            records = self._api.fetch_members(
                self.id,
                member_filter.status.value,
                member_filter.since_as_remote(),
                member_filter.page_start,
                member_filter.page_limit,
            )
        except MailChimpAPIError as e:
            self._record_error(e.message, e.code)
            return []

        if not as_objects:
            return records

        members = [ListMember(self._api).initialize(record["email"], self.id) for record in records]
        for member in members:
            # Listed by fetch_members but missing on lookup
            if member.is_new and not member.errors:
                member.errors.append(
                    RecordedError(
                        code=NOT_FOUND_CODE,
                        message=f"Member {member.email} not found on list {self.id}.",
                    )
                )
        failed = sum(1 for member in members if member.errors)
        if failed:
            logger.warning("%d of %d members of list %s failed to load", failed, len(members), self.id)
        return members

    def get_merge_field_schema(self) -> list[MergeFieldDefinition]:
        """Get the merge field definitions of this list.

        Returns:
            Definitions in remote order, or an empty list if the request failed.
        """
        try:
            fields = self._api.fetch_merge_field_schema(self.id)
        except MailChimpAPIError as e:
            self._record_error(e.message, e.code)
            return []
        return [MergeFieldDefinition.model_validate(field) for field in fields]
