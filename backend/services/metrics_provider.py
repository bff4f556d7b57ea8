"""
Unified metrics provider.

Reads the three raw sources for a client and date window concurrently and
merges them into per-query and per-page records with pandas:

- Google Ads search terms, grouped by normalized query: summed spend
  (cost_micros / 1e6), clicks, impressions, conversions and conversion value;
  derived cpc, ctr % and roas.
- Search Console queries, grouped by normalized query: summed clicks and
  impressions, impression-weighted position, ctr % and the landing page with
  the most impressions.
- GA4 landing pages, grouped by URL path: summed sessions, conversions and
  revenue; session-weighted bounce rate %, engagement rate % and average
  session duration.

Queries join GA4 through their top Search Console page. Pages are the
distinct top pages; their paidSpend is the ad spend of the queries landing
on them.

Missing optional values stay None. Ratios with a zero denominator are None,
and NaN never reaches the pydantic models.
"""

import asyncio
import logging
from decimal import Decimal
from typing import Any, Dict, List, Optional
from urllib.parse import urlsplit

import numpy as np
import pandas as pd

from backend.models import (
    DateRange,
    EngagementMetrics,
    OrganicMetrics,
    PageMetrics,
    PaidMetrics,
    QueryMetrics,
    UnifiedMetrics,
)
from backend.sql import (
    get_ga4_landing_page_metrics_query,
    get_google_ads_query_metrics_query,
    get_search_console_query_metrics_query,
)

logger = logging.getLogger(__name__)


# =============================================================================
# Helpers
# =============================================================================

ADS_COLUMNS = ['query_text', 'impressions', 'clicks', 'cost_micros', 'conversions', 'conversion_value']
SEARCH_CONSOLE_COLUMNS = ['query_text', 'page', 'impressions', 'clicks', 'position']
GA4_COLUMNS = [
    'landing_page', 'sessions', 'engagement_rate', 'bounce_rate',
    'average_session_duration', 'conversions', 'total_revenue',
]


def normalize_query_key(query: Any) -> str:
    return " ".join(str(query).lower().split())


def normalize_path(url: Any) -> str:
    """URL or path -> lower-case path without trailing slash ("/" for the root)."""
    if url is None or (isinstance(url, float) and np.isnan(url)):
        return ""
    path = urlsplit(str(url).strip()).path or "/"
    path = path.rstrip("/") or "/"
    return path.lower()


def _clean(value: Any) -> Optional[Any]:
    """NaN/NA -> None, numpy scalars -> Python scalars."""
    if value is None:
        return None
    try:
        if pd.isna(value):
            return None
    except (TypeError, ValueError):
        return value
    if hasattr(value, 'item'):
        return value.item()
    return value


def _clean_int(value: Any) -> Optional[int]:
    cleaned = _clean(value)
    return int(cleaned) if cleaned is not None else None


def _ratio(numerator: pd.Series, denominator: pd.Series, scale: float = 1.0) -> pd.Series:
    values = np.where(denominator > 0, numerator / denominator.where(denominator > 0), np.nan)
    return pd.Series(values * scale, index=numerator.index, dtype=float)


def _sum_or_nan(series: pd.Series) -> float:
    # All-missing sums stay missing instead of becoming 0
    return series.sum(min_count=1)


def _prepare(df: pd.DataFrame, required: List[str], numeric: List[str]) -> pd.DataFrame:
    if df.empty or not all(col in df.columns for col in required):
        if not df.empty:
            logger.warning(f"Missing columns in metrics source. Required: {required}")
        return pd.DataFrame(columns=required)
    result = df.copy()
    for col in numeric:
        result[col] = pd.to_numeric(result[col], errors='coerce')
    return result


# =============================================================================
# Per-Source Aggregation
# =============================================================================

def aggregate_paid(ads_df: pd.DataFrame) -> pd.DataFrame:
    """Google Ads rows -> one row per normalized query (index: query_key)."""
    df = _prepare(ads_df, ADS_COLUMNS, ['impressions', 'clicks', 'cost_micros', 'conversions', 'conversion_value'])
    if df.empty:
        return pd.DataFrame(
            columns=['query', 'spend', 'clicks', 'impressions', 'conversions', 'conversion_value', 'cpc', 'ctr', 'roas']
        )

    for col in ['impressions', 'clicks', 'cost_micros', 'conversions']:
        df[col] = df[col].fillna(0)
    df['query_key'] = df['query_text'].map(normalize_query_key)
    df['spend'] = df['cost_micros'] / 1_000_000

    grouped = df.groupby('query_key', sort=True).agg(
        query=('query_text', 'first'),
        spend=('spend', 'sum'),
        clicks=('clicks', 'sum'),
        impressions=('impressions', 'sum'),
        conversions=('conversions', 'sum'),
        conversion_value=('conversion_value', _sum_or_nan),
    )
    grouped['cpc'] = _ratio(grouped['spend'], grouped['clicks'])
    grouped['ctr'] = _ratio(grouped['clicks'], grouped['impressions'], 100.0)
    grouped['roas'] = _ratio(grouped['conversion_value'], grouped['spend'])
    return grouped


def aggregate_organic(sc_df: pd.DataFrame) -> pd.DataFrame:
    """Search Console rows -> one row per normalized query (index: query_key)."""
    df = _prepare(sc_df, SEARCH_CONSOLE_COLUMNS, ['impressions', 'clicks', 'position'])
    if df.empty:
        return pd.DataFrame(columns=['query', 'clicks', 'impressions', 'position', 'ctr', 'page', 'weighted_position'])

    df['impressions'] = df['impressions'].fillna(0)
    df['clicks'] = df['clicks'].fillna(0)
    df['query_key'] = df['query_text'].map(normalize_query_key)
    df['weighted_position'] = df['position'] * df['impressions']

    grouped = df.groupby('query_key', sort=True).agg(
        query=('query_text', 'first'),
        clicks=('clicks', 'sum'),
        impressions=('impressions', 'sum'),
        weighted_position=('weighted_position', _sum_or_nan),
        mean_position=('position', 'mean'),
    )
    grouped['position'] = _ratio(grouped['weighted_position'], grouped['impressions']).fillna(grouped['mean_position'])
    grouped['ctr'] = _ratio(grouped['clicks'], grouped['impressions'], 100.0)

    # Landing page with the most impressions; ties broken by URL for determinism
    top_pages = (
        df.dropna(subset=['page'])
        .groupby(['query_key', 'page'], as_index=False)['impressions'].sum()
        .sort_values(['query_key', 'impressions', 'page'], ascending=[True, False, True])
        .drop_duplicates('query_key')
        .set_index('query_key')['page']
    )
    grouped['page'] = top_pages.reindex(grouped.index)
    return grouped.drop(columns=['mean_position'])


def aggregate_engagement(ga4_df: pd.DataFrame) -> pd.DataFrame:
    """GA4 rows -> one row per normalized landing-page path (index: path)."""
    numeric = ['sessions', 'engagement_rate', 'bounce_rate', 'average_session_duration', 'conversions', 'total_revenue']
    df = _prepare(ga4_df, GA4_COLUMNS, numeric)
    if df.empty:
        return pd.DataFrame(
            columns=['sessions', 'bounce_rate', 'engagement_rate', 'avg_session_duration', 'conversions', 'revenue']
        )

    df['sessions'] = df['sessions'].fillna(0)
    df['path'] = df['landing_page'].map(normalize_path)
    df['bounce_weighted'] = df['bounce_rate'] * df['sessions']
    df['engagement_weighted'] = df['engagement_rate'] * df['sessions']
    df['duration_weighted'] = df['average_session_duration'] * df['sessions']

    grouped = df.groupby('path', sort=True).agg(
        sessions=('sessions', 'sum'),
        conversions=('conversions', _sum_or_nan),
        revenue=('total_revenue', _sum_or_nan),
        bounce_weighted=('bounce_weighted', _sum_or_nan),
        engagement_weighted=('engagement_weighted', _sum_or_nan),
        duration_weighted=('duration_weighted', _sum_or_nan),
    )
    # GA4 stores rates as fractions; downstream rules use percent
    grouped['bounce_rate'] = _ratio(grouped['bounce_weighted'], grouped['sessions'], 100.0)
    grouped['engagement_rate'] = _ratio(grouped['engagement_weighted'], grouped['sessions'], 100.0)
    grouped['avg_session_duration'] = _ratio(grouped['duration_weighted'], grouped['sessions'])
    return grouped[['sessions', 'bounce_rate', 'engagement_rate', 'avg_session_duration', 'conversions', 'revenue']]


# =============================================================================
# Merge
# =============================================================================

def _engagement_for(url: Optional[str], engagement: pd.DataFrame) -> Optional[EngagementMetrics]:
    if not url:
        return None
    path = normalize_path(url)
    if path not in engagement.index:
        return None
    row = engagement.loc[path]
    return EngagementMetrics(
        sessions=_clean_int(row['sessions']) or 0,
        bounceRate=_clean(row['bounce_rate']),
        engagementRate=_clean(row['engagement_rate']),
        avgSessionDuration=_clean(row['avg_session_duration']),
        conversions=_clean(row['conversions']) or 0.0,
        revenue=_clean(row['revenue']),
    )


def _build_pages(paid: pd.DataFrame, organic: pd.DataFrame, engagement: pd.DataFrame) -> List[PageMetrics]:
    if organic.empty:
        return []

    page_rows = organic[organic['page'].notna()][['page', 'clicks', 'impressions', 'weighted_position', 'position']].copy()
    if page_rows.empty:
        return []
    page_rows['paid_spend'] = paid['spend'].reindex(page_rows.index).fillna(0) if not paid.empty else 0.0

    pages = page_rows.groupby('page', sort=True).agg(
        clicks=('clicks', 'sum'),
        impressions=('impressions', 'sum'),
        weighted_position=('weighted_position', _sum_or_nan),
        mean_position=('position', 'mean'),
        paid_spend=('paid_spend', 'sum'),
    )
    pages['position'] = _ratio(pages['weighted_position'], pages['impressions']).fillna(pages['mean_position'])
    pages['ctr'] = _ratio(pages['clicks'], pages['impressions'], 100.0)

    results: List[PageMetrics] = []
    for url, row in pages.iterrows():
        engaged = _engagement_for(url, engagement)
        sessions = engaged.sessions if engaged else None
        conversions = engaged.conversions if engaged else None
        conversion_rate = None
        if engaged and sessions:
            conversion_rate = conversions / sessions * 100.0
        results.append(PageMetrics(
            url=str(url),
            paidSpend=float(_clean(row['paid_spend']) or 0.0),
            organicPosition=_clean(row['position']),
            impressions=_clean_int(row['impressions']) or 0,
            clicks=_clean_int(row['clicks']) or 0,
            ctr=_clean(row['ctr']),
            sessions=sessions,
            bounceRate=engaged.bounceRate if engaged else None,
            conversions=conversions,
            conversionRate=conversion_rate,
            avgTimeOnPage=engaged.avgSessionDuration if engaged else None,
            revenue=engaged.revenue if engaged else None,
        ))
    return results


def merge_query_metrics(
    ads_df: pd.DataFrame,
    sc_df: pd.DataFrame,
    ga4_df: pd.DataFrame,
) -> UnifiedMetrics:
    """
    Merge the three raw sources into unified query and page records.

    Args:
        ads_df: Google Ads rows (ADS_COLUMNS).
        sc_df: Search Console rows (SEARCH_CONSOLE_COLUMNS).
        ga4_df: GA4 landing-page rows (GA4_COLUMNS).

    Returns:
        UnifiedMetrics with queries sorted by normalized query and pages by URL.
    """
    paid = aggregate_paid(ads_df)
    organic = aggregate_organic(sc_df)
    engagement = aggregate_engagement(ga4_df)

    keys = sorted(set(paid.index) | set(organic.index))
    queries: List[QueryMetrics] = []
    for key in keys:
        paid_block = None
        organic_block = None
        display = key

        if key in paid.index:
            row = paid.loc[key]
            display = row['query']
            paid_block = PaidMetrics(
                spend=float(_clean(row['spend']) or 0.0),
                clicks=_clean_int(row['clicks']) or 0,
                impressions=_clean_int(row['impressions']) or 0,
                conversions=float(_clean(row['conversions']) or 0.0),
                conversionValue=_clean(row['conversion_value']),
                cpc=_clean(row['cpc']),
                ctr=_clean(row['ctr']),
                roas=_clean(row['roas']),
            )

        if key in organic.index:
            row = organic.loc[key]
            if paid_block is None:
                display = row['query']
            organic_block = OrganicMetrics(
                position=_clean(row['position']),
                clicks=_clean_int(row['clicks']) or 0,
                impressions=_clean_int(row['impressions']) or 0,
                ctr=_clean(row['ctr']),
                url=_clean(row['page']),
            )

        queries.append(QueryMetrics(
            query=str(display),
            paid=paid_block,
            organic=organic_block,
            engagement=_engagement_for(organic_block.url if organic_block else None, engagement),
        ))

    pages = _build_pages(paid, organic, engagement)
    return UnifiedMetrics(queries=queries, pages=pages)


# =============================================================================
# Provider
# =============================================================================

def _record_to_dict(record: Any) -> Dict[str, Any]:
    return {
        key: float(value) if isinstance(value, Decimal) else value
        for key, value in dict(record).items()
    }


class UnifiedMetricsProvider:
    """Reads raw metric tables through the shared asyncpg pool."""

    def __init__(self, pool):
        self.pool = pool

    async def _fetch_frame(self, query: str, *args: Any) -> pd.DataFrame:
        async with self.pool.acquire() as conn:
            rows = await conn.fetch(query, *args)
        return pd.DataFrame([_record_to_dict(row) for row in rows])

    async def fetch(self, client_id: str, date_range: DateRange) -> UnifiedMetrics:
        """
        Fetch and merge all sources for a client and window.

        Raises:
            asyncpg.PostgresError: If any source query fails.
        """
        args = (client_id, date_range.start, date_range.end)
        ads_df, sc_df, ga4_df = await asyncio.gather(
            self._fetch_frame(get_google_ads_query_metrics_query(), *args),
            self._fetch_frame(get_search_console_query_metrics_query(), *args),
            self._fetch_frame(get_ga4_landing_page_metrics_query(), *args),
        )
        logger.info(
            f"Fetched metrics for client {client_id}: {len(ads_df)} ads rows, "
            f"{len(sc_df)} search console rows, {len(ga4_df)} GA4 rows"
        )
        return merge_query_metrics(ads_df, sc_df, ga4_df)


__all__ = [
    "normalize_query_key",
    "normalize_path",
    "aggregate_paid",
    "aggregate_organic",
    "aggregate_engagement",
    "merge_query_metrics",
    "UnifiedMetricsProvider",
]
