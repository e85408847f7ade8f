"""Merge per-source outcomes into one result."""

from __future__ import annotations

import logging
from collections.abc import Iterable
from datetime import datetime

from pyvehicledata.models._base import Record
from pyvehicledata.models.outcome import AggregatedResult, FetchOutcome, utcnow

_logger = logging.getLogger(__name__)


def aggregate(outcomes: Iterable[FetchOutcome], *, now: datetime | None = None) -> AggregatedResult:
    """Concatenate the records of every successful outcome, in input order.

    Failed sources contribute nothing. A batch where every source failed
    yields an empty result rather than an error. Records are not
    deduplicated across sources.
    """
    outcomes = tuple(outcomes)
    items: list[Record] = []
    success_count = 0
    for outcome in outcomes:
        if not outcome.ok:
            continue
        success_count += 1
        if outcome.data is not None:
            items.extend(outcome.data)

    if outcomes and success_count == 0:
        _logger.warning("All %d sources failed", len(outcomes))

    return AggregatedResult(
        items=items,
        fetched_at=now or utcnow(),
        source_count=len(outcomes),
        success_count=success_count,
        outcomes=outcomes,
    )
