from abc import ABC, abstractmethod
from typing import List

from lawcast.models.notice import Notice


class NoticeSource(ABC):
    """Abstract base class for legislative notice sources

    The poller treats a source as an opaque function returning the
    currently published notices, newest or oldest first in any order.
    """

    @abstractmethod
    async def fetch(self) -> List[Notice]:
        """Fetch the currently published notices

        Returns:
            List of notices with unique ``num`` values

        Raises:
            FetchError: On network, timeout or parse failure
        """
        pass

    @property
    @abstractmethod
    def name(self) -> str:
        """Source name for logging and identification"""
        pass
