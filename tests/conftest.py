"""Pytest configuration for mailchimp-lists tests."""

import os
from unittest.mock import MagicMock, patch

import pytest

from mailchimp_lists.api import ApiClient
from mailchimp_lists.exceptions import MailChimpNotFoundError
from mailchimp_lists.settings import reset_settings

# Test constants
TEST_API_KEY = "0123456789abcdef0123456789abcdef-us6"
TEST_LIST_ID = "a1b2c3d4e5"
TEST_EMAIL = "jane@example.com"


@pytest.fixture(autouse=True)
def reset_settings_after_test():
    """Reset settings singleton after each test."""
    yield
    reset_settings()


@pytest.fixture
def mock_env_vars():
    """Set required environment variables for testing."""
    with patch.dict(os.environ, {"MAILCHIMP_API_KEY": TEST_API_KEY}):
        yield


@pytest.fixture
def mock_api():
    """ApiClient double that knows no members."""
    api = MagicMock(spec=ApiClient)
    api.fetch_member.side_effect = MailChimpNotFoundError(
        "Resource Not Found", code=404, resource_type="member"
    )
    return api


@pytest.fixture
def sample_member_record():
    """Member record as an ApiClient returns it, including alias tags."""
    return {
        "id": "8a25ff1d98",
        "web_id": 123456,
        "email": TEST_EMAIL,
        "email_type": "text",
        "status": "subscribed",
        "ip_opt": "10.0.0.1",
        "ip_signup": "10.0.0.2",
        "timestamp": "2011-03-04 10:20:30",
        "info_changed": "2012-05-06 07:08:09",
        "member_rating": 4,
        "lists": {"f6e5d4c3b2": "unsubscribed"},
        "merges": {
            "EMAIL": TEST_EMAIL,
            "FNAME": "Jane",
            "LNAME": "Doe",
            "MERGE0": TEST_EMAIL,
            "MERGE1": "Jane",
            "MERGE2": "Doe",
        },
    }


@pytest.fixture
def sample_list_record():
    """List record as an ApiClient returns it."""
    return {
        "id": TEST_LIST_ID,
        "web_id": 98765,
        "name": "Newsletter",
        "date_created": "2010-01-02 03:04:05",
        "email_type_option": True,
        "member_count": 120,
        "unsubscribe_count": 7,
        "cleaned_count": 3,
        "member_count_since_send": 12,
        "unsubscribe_count_since_send": 1,
        "cleaned_count_since_send": 0,
        "default_from_name": "Example Inc",
        "default_from_email": "news@example.com",
        "default_subject": "Monthly news",
        "default_language": "en",
        "list_rating": 3.5,
    }


@pytest.fixture
def existing_api(mock_api, sample_member_record):
    """ApiClient double that knows the sample member."""
    mock_api.fetch_member.side_effect = None
    mock_api.fetch_member.return_value = sample_member_record
    return mock_api
