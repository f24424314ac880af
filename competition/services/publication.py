from __future__ import annotations

from typing import Optional

from competition.core.logger import get_logger
from competition.data.models import FinalsPublicationRecord, MatchOutcome, PublicationState, PublishResult, Stage
from competition.data.store import MatchResultStore

log = get_logger("services.publication")


def is_query_visible(outcome: MatchOutcome) -> bool:
    """Finals stay hidden from consumer-facing queries until published."""
    if outcome.is_final or outcome.stage == Stage.FINAL:
        return bool(outcome.is_published)
    return True


async def list_finals(
    store: MatchResultStore,
    *,
    is_test: Optional[bool] = None,
    is_published: Optional[bool] = None,
) -> list[FinalsPublicationRecord]:
    return list(await store.list_finals(is_test=is_test, is_published=is_published))


async def publish_pending_finals(store: MatchResultStore, is_test: bool) -> PublishResult:
    """Flip every unpublished final of the given test mode to published.

    Each fixture is flipped on its own with a conditional update, so an
    interrupted run leaves a mix that the next call completes. Fixtures a
    concurrent caller flipped first are not counted here.
    """
    candidates = await store.list_finals(is_test=bool(is_test), is_published=False)
    if not candidates:
        log.info("publish_finals nothing_to_publish is_test=%s", is_test)
        return PublishResult(published_count=0, published_match_ids=[], nothing_to_publish=True)

    published: list[str] = []
    for record in candidates:
        if record.state == PublicationState.PUBLISHED or not await store.mark_final_published(record.match_id):
            log.info("publish_finals already_published match=%s", record.match_id)
            continue
        published.append(record.match_id)

    log.info(
        "publish_finals done is_test=%s candidates=%s published=%s ids=%s",
        is_test,
        len(candidates),
        len(published),
        published,
    )
    return PublishResult(published_count=len(published), published_match_ids=published)
