"""
Competitive metrics provider (auction insights).

Returns the client's own auction-insight metrics for a keyword, or at the
account level as a fallback. Missing data is reported as None; only
transport/database failures raise.
"""

import logging
from typing import Any, Optional

from backend.models import CompetitiveDataLevel, CompetitiveMetrics, DateRange
from backend.sql import (
    get_account_competitive_metrics_query,
    get_keyword_competitive_metrics_query,
)

logger = logging.getLogger(__name__)


def competitive_metrics_from_row(row: Any, level: CompetitiveDataLevel) -> Optional[CompetitiveMetrics]:
    """Aggregate row -> CompetitiveMetrics, or None when no rows were aggregated."""
    if row is None or not row['row_count']:
        return None

    def _value(column: str) -> Optional[float]:
        value = row[column]
        return float(value) if value is not None else None

    return CompetitiveMetrics(
        impressionShare=_value('impression_share'),
        lostImpressionShareRank=_value('lost_impression_share_rank'),
        lostImpressionShareBudget=_value('lost_impression_share_budget'),
        outrankingShare=_value('outranking_share'),
        overlapRate=_value('overlap_rate'),
        topOfPageRate=_value('top_of_page_rate'),
        positionAboveRate=_value('position_above_rate'),
        absTopOfPageRate=_value('abs_top_of_page_rate'),
        dataLevel=level,
    )


class CompetitiveMetricsProvider:
    """Reads auction_insights through the shared asyncpg pool."""

    def __init__(self, pool):
        self.pool = pool

    async def keyword_metrics(
        self, client_id: str, keyword: str, date_range: DateRange
    ) -> Optional[CompetitiveMetrics]:
        async with self.pool.acquire() as conn:
            row = await conn.fetchrow(
                get_keyword_competitive_metrics_query(),
                client_id,
                date_range.start,
                date_range.end,
                keyword,
            )
        return competitive_metrics_from_row(row, CompetitiveDataLevel.KEYWORD)

    async def account_metrics(self, client_id: str, date_range: DateRange) -> Optional[CompetitiveMetrics]:
        async with self.pool.acquire() as conn:
            row = await conn.fetchrow(
                get_account_competitive_metrics_query(),
                client_id,
                date_range.start,
                date_range.end,
            )
        return competitive_metrics_from_row(row, CompetitiveDataLevel.ACCOUNT)


__all__ = [
    "competitive_metrics_from_row",
    "CompetitiveMetricsProvider",
]
