"""Content source interface."""

from abc import ABC, abstractmethod
from typing import List

from ..models import FetchedRecord


class ContentSource(ABC):
    """Abstract base class for remote content sources."""

    @abstractmethod
    async def get_updated_records(self) -> List[FetchedRecord]:
        """
        Fetch the full current batch of records.

        Retries on transient errors are the source's responsibility; anything
        raised here is fatal for the run.

        Returns:
            Records with an empty asset mapping
        """
        pass


class StaticSource(ContentSource):
    """Source serving a fixed list of records (imports, tests, dry runs)."""

    def __init__(self, records: List[FetchedRecord]) -> None:
        self.records = list(records)

    async def get_updated_records(self) -> List[FetchedRecord]:
        return list(self.records)
