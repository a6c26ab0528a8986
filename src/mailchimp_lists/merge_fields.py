"""Merge field storage for a single list member."""

import re
from collections.abc import Iterator, Mapping
from typing import Any

EMAIL_TAG = "EMAIL"
OPT_IN_IP_TAG = "OPTINIP"

# Positional aliases the service reports next to the real tags (MERGE0 == EMAIL, ...)
_ALIAS_TAG = re.compile(r"MERGE\d+")


def canonical_tag(tag: str) -> str:
    """Return the canonical (upper-case) form of a merge tag.

    Raises:
        TypeError: If ``tag`` is not a string.
    """
    if not isinstance(tag, str):
        msg = f"Merge tag must be a string, got {type(tag).__name__}"
        raise TypeError(msg)
    return tag.strip().upper()


def is_alias_tag(tag: str) -> bool:
    """Whether ``tag`` is a legacy positional alias such as ``MERGE3``."""
    return _ALIAS_TAG.fullmatch(canonical_tag(tag)) is not None


class MergeFieldStore(Mapping[str, Any]):
    """Ordered mapping of merge tag to value.

    Tags are case-insensitive and stored upper-case. Alias tags are dropped
    on the way in, so they are never read back or written to the service.
    """

    def __init__(self, fields: Mapping[str, Any] | None = None) -> None:
        self._fields: dict[str, Any] = {}
        if fields:
            self.update(fields)

    def __getitem__(self, tag: str) -> Any:
        return self._fields[canonical_tag(tag)]

    def __iter__(self) -> Iterator[str]:
        return iter(self._fields)

    def __len__(self) -> int:
        return len(self._fields)

    def __contains__(self, tag: object) -> bool:
        return isinstance(tag, str) and canonical_tag(tag) in self._fields

    def __repr__(self) -> str:
        return f"MergeFieldStore({self._fields!r})"

    def get(self, tag: str, default: Any = None) -> Any:
        """Get a field value, or ``default`` when the tag is absent."""
        return self._fields.get(canonical_tag(tag), default)

    def set(self, tag: str, value: Any) -> bool:
        """Set one field.

        Returns:
            False if ``tag`` is an alias tag and was ignored.
        """
        key = canonical_tag(tag)
        if _ALIAS_TAG.fullmatch(key):
            return False
        self._fields[key] = value
        return True

    def update(self, fields: Mapping[str, Any]) -> None:
        """Overlay ``fields`` onto the current values; new values win.

        Raises:
            TypeError: If any tag is not a string. Nothing is stored in that case.
        """
        incoming = [(canonical_tag(tag), value) for tag, value in fields.items()]
        for key, value in incoming:
            self.set(key, value)

    def replace(self, fields: Mapping[str, Any]) -> None:
        """Discard all current values and store ``fields`` instead."""
        incoming = MergeFieldStore(fields)
        self._fields = incoming._fields

    def set_email(self, email: str) -> None:
        self._fields[EMAIL_TAG] = email

    def set_opt_in_ip(self, ip: str) -> None:
        self._fields[OPT_IN_IP_TAG] = ip

    def as_dict(self) -> dict[str, Any]:
        """Return a copy of the fields in insertion order."""
        return dict(self._fields)
