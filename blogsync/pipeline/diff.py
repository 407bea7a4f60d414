"""Classify a fetched batch against the persisted store."""

import logging
from abc import ABC, abstractmethod
from typing import List, Optional, Set

from ..db import ArticleStorage, Store
from ..models import FetchedRecord, UpdatePlan

logger = logging.getLogger(__name__)


class DiffResolver(ABC):
    """Abstract base class for diff strategies."""

    @abstractmethod
    def resolve(self, fetched: List[FetchedRecord], store: Store) -> UpdatePlan:
        """
        Partition a fetched batch into create / update / skip / delete.

        Returns:
            Plan whose record partitions are disjoint and cover the batch
        """
        pass


class TimestampDiffResolver(DiffResolver):
    """Decide on the last-edited timestamp alone.

    A record whose timestamp equals the stored one is skipped even if its
    content differs: the source's timestamp is treated as authoritative.
    """

    def __init__(self, storage: Optional[ArticleStorage] = None) -> None:
        self.storage = storage or ArticleStorage()

    def resolve(self, fetched: List[FetchedRecord], store: Store) -> UpdatePlan:
        existing = self.storage.get_timestamps(store)

        to_create: List[FetchedRecord] = []
        to_update: List[FetchedRecord] = []
        to_skip: List[FetchedRecord] = []
        seen: Set[str] = set()

        for record in fetched:
            if record.id in seen:
                logger.warning("Duplicate record %s in fetched batch, keeping the first", record.id)
                continue
            seen.add(record.id)

            stored = existing.get(record.id)
            if stored is None:
                to_create.append(record)
            elif stored != record.last_edited:
                to_update.append(record)
            else:
                to_skip.append(record)

        to_delete = [article_id for article_id in existing if article_id not in seen]

        return UpdatePlan(
            to_create=to_create,
            to_update=to_update,
            to_skip=to_skip,
            to_delete=to_delete,
        )
