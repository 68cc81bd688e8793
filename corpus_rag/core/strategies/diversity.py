"""Per-document diversification of ranked results."""
import logging
from collections import Counter
from typing import Protocol, Sequence, TypeVar

logger = logging.getLogger(__name__)


class _HasDocument(Protocol):
    document_id: str


T = TypeVar("T", bound=_HasDocument)


def diversify(results: Sequence[T], max_per_document: int) -> list[T]:
    """Keep at most max_per_document items per document.

    Items over the cap are dropped, not replaced. Output is a
    subsequence of the input order.
    """
    if max_per_document < 1:
        raise ValueError("max_per_document must be at least 1")

    counts: Counter[str] = Counter()
    kept = []
    for result in results:
        if counts[result.document_id] < max_per_document:
            counts[result.document_id] += 1
            kept.append(result)
    return kept


def diversify_with_relax(
    results: Sequence[T],
    max_per_document: int,
    target_size: int,
) -> list[T]:
    """Diversify with a tight cap, then top up from documents already chosen.

    When the tight pass yields fewer than target_size items, a second pass
    admits one extra item per document already present, in score order.
    No new document is introduced by the second pass.

    Args:
        results: Score-sorted results.
        max_per_document: Tight per-document cap.
        target_size: Desired number of items.

    Returns:
        At most target_size items, a subsequence of the input order.
    """
    if max_per_document < 1:
        raise ValueError("max_per_document must be at least 1")

    selected = [False] * len(results)
    counts: Counter[str] = Counter()
    taken = 0
    for i, result in enumerate(results):
        if taken >= target_size:
            break
        if counts[result.document_id] < max_per_document:
            counts[result.document_id] += 1
            selected[i] = True
            taken += 1

    if taken < target_size:
        present = set(counts)
        relaxed_cap = max_per_document + 1
        added = 0
        for i, result in enumerate(results):
            if taken >= target_size:
                break
            if selected[i] or result.document_id not in present:
                continue
            if counts[result.document_id] < relaxed_cap:
                counts[result.document_id] += 1
                selected[i] = True
                taken += 1
                added += 1
        if added:
            logger.debug(f"Relaxed diversification added {added} chunks from known documents")

    return [r for i, r in enumerate(results) if selected[i]]
