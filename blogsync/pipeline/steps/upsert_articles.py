"""Apply an update plan to the article table."""

from typing import List, Optional

from ...db import ArticleStorage
from ...models import ProcessedRecord, UpdatePlan
from ..assets import AssetRewriter
from ..models import Phase
from ..step import PipelineStep


class UpsertArticlesStep(PipelineStep):
    name = "upsert-articles"
    description = "Insert or update changed articles, delete removed ones"
    phase = Phase.UPDATE

    def __init__(self, rewriter: AssetRewriter, storage: Optional[ArticleStorage] = None) -> None:
        super().__init__()
        self.rewriter = rewriter
        self.storage = storage or ArticleStorage()

    async def execute(self, plan: UpdatePlan) -> List[ProcessedRecord]:
        # Deletions first
        deleted = self.storage.delete_articles(self.store, plan.to_delete)
        if deleted:
            self.log(f"Deleted {deleted} articles")

        processed = []
        for record in plan.to_process:
            article = await self.rewriter.rewrite(record)
            self.storage.upsert_article(self.store, article)
            processed.append(article)

        self.stats.update(
            {
                "new": len(plan.to_create),
                "updated": len(plan.to_update),
                "deleted": deleted,
            }
        )
        self.log(
            f"Upserted {len(processed)} articles "
            f"({len(plan.to_create)} new, {len(plan.to_update)} updated)"
        )
        return processed
