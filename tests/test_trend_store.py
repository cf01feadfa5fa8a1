"""
Trend record store and content harvesting tests.
"""
from datetime import datetime, timedelta

from analytics_engine.models import TrendCategory, TrendDataPoint
from analytics_engine.trend_store import TrendRecordStore, categorize_keyword, extract_keywords


def test_extract_keywords_filters_short_and_stop_words():
    text = "The AI marketing strategy and the AI tools for brands, marketing tools"
    assert extract_keywords(text) == ["marketing", "strategy", "tools", "brands"]


def test_extract_keywords_keeps_first_ten():
    text = " ".join(f"word{i:02d}" for i in range(15))
    assert len(extract_keywords(text)) == 10


def test_categorize_keyword():
    assert categorize_keyword("software") == TrendCategory.TECHNOLOGY
    assert categorize_keyword("strategy") == TrendCategory.BUSINESS
    assert categorize_keyword("brand") == TrendCategory.MARKETING
    assert categorize_keyword("marketing") == TrendCategory.BUSINESS
    assert categorize_keyword("campaign") == TrendCategory.TECHNOLOGY
    assert categorize_keyword("community") == TrendCategory.SOCIAL
    assert categorize_keyword("weather") == TrendCategory.GENERAL


def test_add_sample_keeps_points_sorted_and_capped():
    store = TrendRecordStore(max_points=3)
    start = datetime(2024, 5, 1)
    for day in (3, 1, 4, 2):
        store.add_sample("seo", TrendDataPoint(timestamp=start + timedelta(days=day), mentions=day))

    record = store.get("seo")
    assert [dp.mentions for dp in record.data_points] == [2, 3, 4]
    assert record.first_detected == start + timedelta(days=1)
    assert record.last_updated == start + timedelta(days=4)
    assert record.id == "trend-seo"


def test_ingest_content_records():
    store = TrendRecordStore()
    records = [
        {
            "id": 1,
            "created_at": "2024-05-01T10:00:00Z",
            "title": "Brand tips",
            "description": "Brand budgets",
            "source_url": "https://blog.example/1",
            "engagement": 42,
            "sentiment": 3,
        },
        {
            "id": 2,
            "created_at": "2024-05-02T10:00:00",
            "content_data": {"extractedData": {"title": "Brand review", "content": "software"}},
            "research_query": "brand software",
        },
        {"id": 3, "title": "No date brand"},
    ]

    added = store.ingest_content_records(records)

    brand = store.get("brand")
    assert added == 6
    assert len(store) == 5
    assert len(brand.data_points) == 2
    assert brand.category == TrendCategory.MARKETING
    assert brand.data_points[0].sources == ["https://blog.example/1"]
    assert brand.data_points[0].sentiment == 1.0
    assert brand.data_points[0].engagement == 42
    assert brand.data_points[1].sources == ["brand software"]
    assert brand.data_points[1].context == "Brand review"
    assert brand.data_points[0].timestamp == datetime(2024, 5, 1, 10)


def test_list_filters_by_keyword():
    store = TrendRecordStore()
    now = datetime(2024, 5, 1)
    for keyword in ("seo", "ppc", "crm"):
        store.add_sample(keyword, TrendDataPoint(timestamp=now, mentions=1))

    assert [r.keyword for r in store.list(["SEO", "crm"])] == ["seo", "crm"]
    assert store.remove("ppc")
    assert not store.remove("ppc")
    assert [r.keyword for r in store.list()] == ["seo", "crm"]
