"""Per-keyword trend record storage and content-record harvesting"""

import re
from typing import Any, Dict, Iterable, List, Optional
from datetime import datetime
import pandas as pd
import structlog

from .config import settings
from .models import TrendCategory, TrendDataPoint, TrendRecord
from .utils import clamp, to_naive_utc

logger = structlog.get_logger(__name__)

STOP_WORDS = {"the", "and", "or", "but", "in", "on", "at", "to", "for", "of", "with", "by"}
MAX_KEYWORDS_PER_RECORD = 10

_WORD_RE = re.compile(r"\b\w{3,}\b")

_CATEGORY_RULES = [
    (TrendCategory.TECHNOLOGY, ("ai", "tech", "software")),
    (TrendCategory.BUSINESS, ("market", "business", "strategy")),
    (TrendCategory.MARKETING, ("marketing", "campaign", "brand")),
    (TrendCategory.SOCIAL, ("social", "media", "community")),
]


def extract_keywords(text: str) -> List[str]:
    """Unique lower-case words of 3+ characters, stop words removed, first 10"""
    keywords = []
    for word in _WORD_RE.findall(text.lower()):
        if word in STOP_WORDS or word in keywords:
            continue
        keywords.append(word)
        if len(keywords) == MAX_KEYWORDS_PER_RECORD:
            break
    return keywords


def categorize_keyword(keyword: str) -> TrendCategory:
    # First matching rule wins, so "marketing" lands in business via "market"
    k = keyword.lower()
    for category, needles in _CATEGORY_RULES:
        if any(needle in k for needle in needles):
            return category
    return TrendCategory.GENERAL


def _nested(item: Dict[str, Any], *path: str) -> Optional[Any]:
    value: Any = item
    for key in path:
        if not isinstance(value, dict):
            return None
        value = value.get(key)
    return value


def _parse_timestamp(value: Any) -> Optional[datetime]:
    if value is None:
        return None
    try:
        parsed = pd.Timestamp(value)
    except (ValueError, TypeError):
        return None
    if pd.isna(parsed):
        return None
    return to_naive_utc(parsed.to_pydatetime())


class TrendRecordStore:
    """Keyword -> TrendRecord map with sorted, capped sample lists"""

    def __init__(self, max_points: Optional[int] = None):
        self.max_points = max_points if max_points is not None else settings.max_points_per_trend
        self._records: Dict[str, TrendRecord] = {}

    def upsert(self, record: TrendRecord):
        record.data_points.sort(key=lambda dp: dp.timestamp)
        self._cap(record)
        self._records[record.keyword] = record

    def get(self, keyword: str) -> Optional[TrendRecord]:
        return self._records.get(keyword)

    def list(self, keywords: Optional[Iterable[str]] = None) -> List[TrendRecord]:
        if keywords is None:
            return list(self._records.values())
        wanted = {k.lower() for k in keywords}
        return [r for r in self._records.values() if r.keyword.lower() in wanted]

    def remove(self, keyword: str) -> bool:
        return self._records.pop(keyword, None) is not None

    def __len__(self) -> int:
        return len(self._records)

    def add_sample(
        self,
        keyword: str,
        data_point: TrendDataPoint,
        topic: Optional[str] = None,
        category: Optional[TrendCategory] = None,
    ) -> TrendRecord:
        record = self._records.get(keyword)
        if record is None:
            record = TrendRecord(
                id=f"trend-{keyword}",
                keyword=keyword,
                topic=topic or keyword,
                category=category or categorize_keyword(keyword),
                first_detected=data_point.timestamp,
                last_updated=data_point.timestamp,
            )
            self._records[keyword] = record

        record.data_points.append(data_point)
        record.data_points.sort(key=lambda dp: dp.timestamp)
        self._cap(record)
        record.first_detected = min(record.first_detected, data_point.timestamp)
        record.last_updated = max(record.last_updated, data_point.timestamp)
        return record

    def ingest_content_records(self, items: Iterable[Dict[str, Any]]) -> int:
        """Turn scraped content records into one mention per extracted keyword.

        Returns the number of samples added.
        """
        added = 0
        for item in items:
            timestamp = _parse_timestamp(item.get("created_at"))
            if timestamp is None:
                logger.warning("Content record skipped, no timestamp", record_id=item.get("id"))
                continue

            content = (
                _nested(item, "content_data", "extractedData", "content")
                or _nested(item, "research_results", "extractedData", "content")
                or item.get("content")
                or item.get("description")
                or item.get("insights")
                or ""
            )
            title = (
                _nested(item, "content_data", "extractedData", "title")
                or _nested(item, "research_results", "extractedData", "title")
                or item.get("title")
                or ""
            )
            source = item.get("source_url") or item.get("research_query") or "unknown"

            for keyword in extract_keywords(f"{title} {content}"):
                self.add_sample(keyword, TrendDataPoint(
                    timestamp=timestamp,
                    mentions=1,
                    engagement=float(item.get("engagement") or 0.0),
                    sentiment=clamp(float(item.get("sentiment") or 0.0), -1.0, 1.0),
                    sources=[source],
                    context=title or None,
                ))
                added += 1

        logger.info("Content records ingested", samples=added, trends=len(self._records))
        return added

    def _cap(self, record: TrendRecord):
        overflow = len(record.data_points) - self.max_points
        if overflow > 0:
            del record.data_points[:overflow]
