"""Pydantic models for Mailchimp list data.

Type-safe models for list snapshots, merge field definitions, member queries
and the errors recorded by list and member objects.
"""

from datetime import datetime, timezone
from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field

REMOTE_DATE_FORMAT = "%Y-%m-%d %H:%M:%S"
VALIDATION_ERROR_CODE = "VALIDATION_ERROR"


class EmailType(str, Enum):
    """Email format a member prefers to receive."""

    HTML = "html"
    TEXT = "text"
    MOBILE = "mobile"


class MemberStatus(str, Enum):
    """Subscription status of a list member.

    ``UPDATED`` is reported by the service when querying members but can
    never be assigned to a member.
    """

    SUBSCRIBED = "subscribed"
    UNSUBSCRIBED = "unsubscribed"
    CLEANED = "cleaned"
    UPDATED = "updated"


SETTABLE_STATUSES = frozenset(
    {MemberStatus.SUBSCRIBED, MemberStatus.UNSUBSCRIBED, MemberStatus.CLEANED}
)


class RecordedError(BaseModel):
    """An error appended to an object's error list instead of being raised.

    Attributes:
        code: Machine-readable code (remote code or ``VALIDATION_ERROR``)
        message: Human-readable message
    """

    model_config = ConfigDict(frozen=True)

    code: int | str | None = None
    message: str

    def __str__(self) -> str:
        """Return ``code: message``."""
        if self.code is None:
            return self.message
        return f"{self.code}: {self.message}"


class ListSnapshot(BaseModel):
    """Metadata of one mailing list as last fetched.

    Attributes:
        id: Opaque list identifier
        web_id: Numeric id used for links into the web UI
        name: Display name
        date_created: Creation date as reported by the service
        email_type_option: Whether the list lets members choose a format
        member_count: Active members
        unsubscribe_count: Unsubscribed members
        cleaned_count: Cleaned members
        member_count_since_send: Active members since the last campaign
        unsubscribe_count_since_send: Unsubscribes since the last campaign
        cleaned_count_since_send: Cleaned since the last campaign
        default_from_name: Campaign default from-name
        default_from_email: Campaign default from-email
        default_subject: Campaign default subject
        default_language: Default language of the list's forms
        list_rating: Activity rating from 0 to 5
    """

    model_config = ConfigDict(frozen=True, extra="ignore")

    id: str
    web_id: int = 0
    name: str = ""
    date_created: str | None = None
    email_type_option: bool = False
    member_count: int = 0
    unsubscribe_count: int = 0
    cleaned_count: int = 0
    member_count_since_send: int = 0
    unsubscribe_count_since_send: int = 0
    cleaned_count_since_send: int = 0
    default_from_name: str = ""
    default_from_email: str = ""
    default_subject: str = ""
    default_language: str = ""
    list_rating: float = Field(default=0.0, ge=0, le=5)


class MergeFieldDefinition(BaseModel):
    """Schema entry for one merge field of a list.

    Attributes:
        name: Display name of the field
        tag: Merge tag used when reading and writing member data
        field_type: Data type (email, text, number, radio, dropdown, date, ...)
        required: Whether the field must be filled in
        default: Default value set by the list owner
        order: Display order
        public: Whether the field is visible to subscribers
        show: Whether the field is shown on the list dashboard
        size: Display width of the field
        choices: Options for radio and dropdown fields
    """

    model_config = ConfigDict(extra="ignore")

    name: str
    tag: str
    field_type: str = "text"
    required: bool = False
    default: str | None = None
    order: int = 0
    public: bool = True
    show: bool = True
    size: str | None = None
    choices: list[str] = Field(default_factory=list)


class MemberFilter(BaseModel):
    """Query parameters for fetching the members of a list.

    Attributes:
        status: Status of the members to fetch
        since: Only members changed since this moment (datetime or unix timestamp)
        page_start: Page number to start at
        page_limit: Number of members per page
    """

    status: MemberStatus = MemberStatus.SUBSCRIBED
    since: datetime | int | None = None
    page_start: int = Field(default=0, ge=0)
    page_limit: int = Field(default=25, ge=1, le=15000)

    def since_as_remote(self) -> str | None:
        """Format ``since`` the way the service expects dates.

        Returns:
            Date string in UTC, or None when no lower bound is set.
        """
        if self.since is None:
            return None
        if isinstance(self.since, datetime):
            moment = self.since
            if moment.tzinfo is not None:
                moment = moment.astimezone(timezone.utc)
        else:
            if self.since <= 0:
                return None
            moment = datetime.fromtimestamp(self.since, tz=timezone.utc)
        return moment.strftime(REMOTE_DATE_FORMAT)


def to_unix_timestamp(value: Any) -> int:
    """Convert a date reported by the service into a unix timestamp.

    Accepts ``YYYY-MM-DD HH:MM:SS`` and ISO 8601 strings; naive values are
    taken as UTC.

    Args:
        value: Date string as reported by the service.

    Returns:
        Seconds since the epoch, or 0 when the value is empty or unparseable.
    """
    if not value:
        return 0
    try:
        moment = datetime.fromisoformat(str(value).replace("Z", "+00:00"))
    except ValueError:
        return 0
    if moment.tzinfo is None:
        moment = moment.replace(tzinfo=timezone.utc)
    return int(moment.timestamp())
