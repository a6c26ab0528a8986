"""Mailchimp list and member object model.

Provides objects for reading mailing lists and for loading, creating and
updating list members and their merge fields.

Example:
    ```python
    from mailchimp_lists import ListDirectory

    directory = ListDirectory()

    # Find a list and look up a member
    mailing_list = directory.get_list("a1b2c3")
    member = mailing_list.get_member("jane@example.com")

    # New addresses are subscribed, known ones updated
    member.set_merge_fields({"fname": "Jane"}, merge_with_existing=True)
    if not member.save(double_opt_in=False):
        print(member.errors)
    ```
"""

from mailchimp_lists.api import ApiClient
from mailchimp_lists.client import MailChimpAPIClient
from mailchimp_lists.directory import ListDirectory
from mailchimp_lists.exceptions import (
    MailChimpAPIError,
    MailChimpAuthError,
    MailChimpConflictError,
    MailChimpNotFoundError,
    MailChimpRateLimitError,
    MailChimpValidationError,
    RemoteError,
)
from mailchimp_lists.mailing_list import MailingList
from mailchimp_lists.member import ListMember, MemberState
from mailchimp_lists.merge_fields import MergeFieldStore
from mailchimp_lists.models import (
    EmailType,
    ListSnapshot,
    MemberFilter,
    MemberStatus,
    MergeFieldDefinition,
    RecordedError,
)
from mailchimp_lists.settings import (
    MailChimpSettings,
    get_mailchimp_settings,
    reset_settings,
)

__all__ = [
    "ApiClient",
    "EmailType",
    "ListDirectory",
    "ListMember",
    "ListSnapshot",
    "MailChimpAPIClient",
    "MailChimpAPIError",
    "MailChimpAuthError",
    "MailChimpConflictError",
    "MailChimpNotFoundError",
    "MailChimpRateLimitError",
    "MailChimpSettings",
    "MailChimpValidationError",
    "MailingList",
    "MemberFilter",
    "MemberState",
    "MemberStatus",
    "MergeFieldDefinition",
    "MergeFieldStore",
    "RecordedError",
    "RemoteError",
    "get_mailchimp_settings",
    "reset_settings",
]

__version__ = "0.1.0"
