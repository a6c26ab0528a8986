"""Tests for mailchimp_lists mailing list and directory."""

import logging
from datetime import datetime, timezone
from unittest.mock import MagicMock, patch

import pytest
from pydantic import ValidationError

from mailchimp_lists.api import ApiClient
from mailchimp_lists.directory import ListDirectory
from mailchimp_lists.exceptions import MailChimpAPIError, MailChimpAuthError, MailChimpNotFoundError
from mailchimp_lists.mailing_list import MailingList
from mailchimp_lists.member import ListMember
from mailchimp_lists.models import MemberFilter, MemberStatus, MergeFieldDefinition

LIST_ID = "a1b2c3d4e5"


class TestLoadById:
    """Test suite for loading lists."""

    def test_load_by_id_found(self, mock_api, sample_list_record):
        """Test the matching record is adopted."""
        mock_api.list_all_lists.return_value = [
            {"id": "zzz", "name": "Other"},
            sample_list_record,
        ]

        mailing_list = MailingList(mock_api).load_by_id(LIST_ID)

        assert not mailing_list.not_found
        assert mailing_list.errors == []
        assert mailing_list.id == LIST_ID
        assert mailing_list.name == "Newsletter"

    def test_load_by_id_not_found(self, mock_api, sample_list_record):
        """Test a missing list is flagged but stays usable."""
        mock_api.list_all_lists.return_value = [sample_list_record]

        mailing_list = MailingList(mock_api).load_by_id("missing")

        assert mailing_list.not_found
        assert len(mailing_list.errors) == 1
        assert mailing_list.errors[0].code == "NOT_FOUND"
        assert "missing" in mailing_list.errors[0].message
        assert mailing_list.id == ""
        assert mailing_list.get_member_count() == 0

    def test_load_by_id_remote_failure(self, mock_api):
        """Test remote failures are recorded."""
        mock_api.list_all_lists.side_effect = MailChimpAPIError("Service Unavailable", code=503)

        mailing_list = MailingList(mock_api).load_by_id(LIST_ID)

        assert mailing_list.errors[0].code == 503

    def test_refresh_replaces_snapshot(self, mock_api, sample_list_record):
        """Test refresh swaps in the latest record."""
        mailing_list = MailingList(mock_api, sample_list_record)
        mock_api.list_all_lists.return_value = [{**sample_list_record, "member_count": 121}]

        assert mailing_list.refresh() is True
        assert mailing_list.get_member_count() == 121

    def test_refresh_unloaded_list(self, mock_api):
        """Test refreshing an empty list fails without a remote call."""
        mailing_list = MailingList(mock_api)

        assert mailing_list.refresh() is False
        mock_api.list_all_lists.assert_not_called()


class TestAccessors:
    """Test suite for snapshot accessors."""

    @pytest.fixture
    def mailing_list(self, mock_api, sample_list_record):
        """A list built from the sample record."""
        return MailingList(mock_api, sample_list_record)

    def test_identity(self, mailing_list):
        """Test id, web id and name."""
        assert mailing_list.id == LIST_ID
        assert mailing_list.web_id == 98765
        assert mailing_list.name == "Newsletter"

    def test_date_created_is_unix_timestamp(self, mailing_list):
        """Test the creation date is converted to unix time."""
        expected = int(datetime(2010, 1, 2, 3, 4, 5, tzinfo=timezone.utc).timestamp())

        assert mailing_list.date_created == expected

    def test_counts(self, mailing_list):
        """Test counts with and without the since-send scope."""
        assert mailing_list.get_member_count() == 120
        assert mailing_list.get_member_count(since_send=True) == 12
        assert mailing_list.get_unsubscribe_count() == 7
        assert mailing_list.get_unsubscribe_count(since_send=True) == 1
        assert mailing_list.get_cleaned_count() == 3
        assert mailing_list.get_cleaned_count(since_send=True) == 0

    def test_defaults(self, mailing_list):
        """Test campaign defaults and rating."""
        assert mailing_list.default_from_name == "Example Inc"
        assert mailing_list.default_from_email == "news@example.com"
        assert mailing_list.default_subject == "Monthly news"
        assert mailing_list.default_language == "en"
        assert mailing_list.list_rating == 3.5
        assert mailing_list.email_type_option is True

    def test_snapshot_is_immutable(self, mailing_list):
        """Test snapshot fields cannot be changed in place."""
        with pytest.raises(ValidationError):
            mailing_list.snapshot.name = "Renamed"


class TestGetMembers:
    """Test suite for member queries."""

    @pytest.fixture
    def mailing_list(self, mock_api, sample_list_record):
        """A list built from the sample record."""
        return MailingList(mock_api, sample_list_record)

    def test_default_filter(self, mailing_list, mock_api):
        """Test the default query asks for 25 subscribed members."""
        mock_api.fetch_members.return_value = [{"email": "a@example.com"}]

        records = mailing_list.get_members()

        assert records == [{"email": "a@example.com"}]
        mock_api.fetch_members.assert_called_once_with(LIST_ID, "subscribed", None, 0, 25)

    def test_filter_passes_through(self, mailing_list, mock_api):
        """Test status, since and paging reach the client."""
        mock_api.fetch_members.return_value = []
        member_filter = MemberFilter(
            status=MemberStatus.UNSUBSCRIBED,
            since=datetime(2020, 1, 2, 3, 4, 5, tzinfo=timezone.utc),
            page_start=2,
            page_limit=100,
        )

        mailing_list.get_members(member_filter)

        mock_api.fetch_members.assert_called_once_with(
            LIST_ID, "unsubscribed", "2020-01-02 03:04:05", 2, 100
        )

    def test_as_objects_expands_each_member(self, mailing_list, existing_api):
        """Test expansion looks every member up, preserving order."""
        existing_api.fetch_members.return_value = [
            {"email": "first@example.com"},
            {"email": "second@example.com"},
        ]

        members = mailing_list.get_members(as_objects=True)

        assert all(isinstance(member, ListMember) for member in members)
        assert [call.args[1] for call in existing_api.fetch_member.call_args_list] == [
            "first@example.com",
            "second@example.com",
        ]

    def test_as_objects_partial_failure(self, mailing_list, mock_api, sample_member_record):
        """Test one failed lookup does not abort the batch."""
        mock_api.fetch_members.return_value = [
            {"email": "jane@example.com"},
            {"email": "broken@example.com"},
        ]
        mock_api.fetch_member.side_effect = [
            sample_member_record,
            MailChimpAPIError("Internal Server Error", code=500),
        ]

        members = mailing_list.get_members(as_objects=True)

        assert len(members) == 2
        assert not members[0].is_new
        assert members[1].errors[0].code == 500

    def test_as_objects_member_gone_before_lookup(self, mailing_list, mock_api, sample_member_record, caplog):
        """Test a listed member that the lookup no longer finds is reported as failed."""
        mock_api.fetch_members.return_value = [
            {"email": "jane@example.com"},
            {"email": "gone@example.com"},
        ]
        mock_api.fetch_member.side_effect = [
            sample_member_record,
            MailChimpNotFoundError("Resource Not Found", code=404),
        ]

        with caplog.at_level(logging.WARNING, logger="mailchimp_lists.mailing_list"):
            members = mailing_list.get_members(as_objects=True)

        assert members[0].errors == []
        assert members[1].is_new
        assert len(members[1].errors) == 1
        assert members[1].errors[0].code == "NOT_FOUND"
        assert "gone@example.com" in members[1].errors[0].message
        assert "1 of 2 members" in caplog.text

    def test_remote_failure_returns_empty(self, mailing_list, mock_api):
        """Test a failed query is recorded and yields no members."""
        mock_api.fetch_members.side_effect = MailChimpAPIError("Bad Request", code=400)

        assert mailing_list.get_members() == []
        assert mailing_list.errors[0].code == 400

    def test_get_member(self, mailing_list, existing_api):
        """Test looking up a single member of the list."""
        member = mailing_list.get_member("jane@example.com")

        assert not member.is_new
        assert member.list_id == LIST_ID


class TestMergeFieldSchema:
    """Test suite for merge field schema retrieval."""

    def test_schema(self, mock_api, sample_list_record):
        """Test field definitions are returned as models."""
        mock_api.fetch_merge_field_schema.return_value = [
            {"name": "First Name", "tag": "FNAME", "field_type": "text", "order": 2},
            {
                "name": "Size",
                "tag": "SIZE",
                "field_type": "dropdown",
                "required": True,
                "choices": ["S", "M", "L"],
            },
        ]
        mailing_list = MailingList(mock_api, sample_list_record)

        schema = mailing_list.get_merge_field_schema()

        assert [field.tag for field in schema] == ["FNAME", "SIZE"]
        assert isinstance(schema[0], MergeFieldDefinition)
        assert schema[1].required is True
        assert schema[1].choices == ["S", "M", "L"]
        mock_api.fetch_merge_field_schema.assert_called_once_with(LIST_ID)


class TestListDirectory:
    """Test suite for ListDirectory."""

    def test_list_all_preserves_order(self, mock_api, sample_list_record):
        """Test one MailingList per record, in remote order."""
        mock_api.list_all_lists.return_value = [
            sample_list_record,
            {"id": "second", "name": "Second"},
        ]

        lists = ListDirectory(mock_api).list_all()

        assert [mailing_list.id for mailing_list in lists] == [LIST_ID, "second"]

    def test_list_all_propagates_remote_error(self, mock_api):
        """Test remote failures are raised to the caller."""
        mock_api.list_all_lists.side_effect = MailChimpAuthError("API Key Invalid", code=401)

        with pytest.raises(MailChimpAuthError) as exc_info:
            ListDirectory(mock_api).list_all()

        assert exc_info.value.code == 401

    def test_get_list(self, mock_api, sample_list_record):
        """Test looking up a list by id."""
        mock_api.list_all_lists.return_value = [sample_list_record]

        mailing_list = ListDirectory(mock_api).get_list(LIST_ID)

        assert mailing_list.name == "Newsletter"

    def test_default_client_created_lazily(self):
        """Test the directory builds a client from the environment on first use."""
        with patch("mailchimp_lists.directory.MailChimpAPIClient") as mock_client_cls:
            mock_client_cls.return_value = MagicMock(spec=ApiClient)
            directory = ListDirectory()

            mock_client_cls.assert_not_called()
            assert directory.api is mock_client_cls.return_value
