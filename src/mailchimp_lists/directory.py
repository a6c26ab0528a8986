"""Entry point listing every mailing list reachable with one API key."""

import logging

from mailchimp_lists.api import ApiClient
from mailchimp_lists.client import MailChimpAPIClient
from mailchimp_lists.mailing_list import MailingList

logger = logging.getLogger(__name__)


class ListDirectory:
    """All mailing lists of one account.

    Example:
        ```python
        directory = ListDirectory()
        for mailing_list in directory.list_all():
            print(mailing_list.name, mailing_list.get_member_count())
        ```
    """

    def __init__(self, api: ApiClient | None = None) -> None:
        """Initialize the directory.

        Args:
            api: Optional client. If not provided, a ``MailChimpAPIClient`` is
                created from the environment on first use.
        """
        self._api = api

    @property
    def api(self) -> ApiClient:
        """Get or create the API client."""
        if self._api is None:
            self._api = MailChimpAPIClient()
        return self._api

    def list_all(self) -> list[MailingList]:
        """Get every list on the account, in remote order.

        Returns:
            One ``MailingList`` per remote list.

        Raises:
            MailChimpAPIError: If the remote call fails.
        """
        lists = [MailingList(self.api, record) for record in self.api.list_all_lists()]
        logger.debug("Directory holds %d lists", len(lists))
        return lists

    def get_list(self, list_id: str) -> MailingList:
        """Get one list by id; check ``not_found`` on the result."""
        return MailingList(self.api).load_by_id(list_id)
