"""Unit and property tests for the ReliefWeb reports source."""

import pytest
from hypothesis import given, settings, strategies as st

from src.engines.reliefweb_source import (
    RELIEFWEB_REPORTS_URL,
    RESULT_LIMIT,
    ReliefWebSource,
    build_query,
    theme_severity,
)
from src.engines.risk_item import SOURCE_RELIEFWEB


SAMPLE_RESPONSE = {
    "totalCount": 2,
    "count": 2,
    "data": [
        {
            "id": "4012345",
            "fields": {
                "title": "South Africa: Cholera outbreak - Jan 2024",
                "url": "https://reliefweb.int/report/south-africa/cholera-outbreak",
                "date": {"created": "2024-01-15T10:30:00+00:00"},
                "theme": [{"name": "Health"}, {"name": "Protection and Human Rights"}],
                "source": [{"name": "WHO"}],
            },
        },
        {
            "id": 4012346,
            "fields": {
                "title": "Flood response update",
                "date.created": "2024-01-14T08:00:00+00:00",
                "theme": [{"name": "Health"}],
            },
        },
    ],
}


def _days_sent(fetcher) -> str:
    body = fetcher.calls[0]["json_body"]
    return body["filter"]["conditions"][2]["value"]["from"]


class TestReliefWebParsing:
    """Unit tests for record mapping."""

    def test_maps_every_record_in_order(self, stub_fetcher):
        result = ReliefWebSource(stub_fetcher(SAMPLE_RESPONSE)).fetch()

        assert result.success
        assert [item.id for item in result.items] == ["rw:4012345", "rw:4012346"]

    def test_fields(self, stub_fetcher):
        item = ReliefWebSource(stub_fetcher(SAMPLE_RESPONSE)).fetch().items[0]

        assert item.source == SOURCE_RELIEFWEB
        assert item.title == "South Africa: Cholera outbreak - Jan 2024"
        assert item.ts == "2024-01-15T10:30:00+00:00"
        assert item.summary == "Health, Protection and Human Rights"
        assert item.links == ["https://reliefweb.int/report/south-africa/cholera-outbreak"]

    def test_flat_date_key_accepted(self, stub_fetcher):
        item = ReliefWebSource(stub_fetcher(SAMPLE_RESPONSE)).fetch().items[1]
        assert item.ts == "2024-01-14T08:00:00+00:00"

    def test_missing_url_gives_no_links(self, stub_fetcher):
        item = ReliefWebSource(stub_fetcher(SAMPLE_RESPONSE)).fetch().items[1]
        assert item.links == []

    def test_protection_theme_raises_severity(self, stub_fetcher):
        items = ReliefWebSource(stub_fetcher(SAMPLE_RESPONSE)).fetch().items
        assert items[0].severity == 4
        assert items[1].severity == 3

    def test_record_without_fields_still_normalized(self, stub_fetcher):
        result = ReliefWebSource(stub_fetcher({"data": [{"id": 7}]})).fetch()
        item = result.items[0]

        assert item.id == "rw:7"
        assert item.title == ""
        assert item.summary == ""
        assert item.severity == 3
        assert item.ts

    def test_empty_data_gives_empty_success(self, stub_fetcher):
        result = ReliefWebSource(stub_fetcher({"data": []})).fetch()
        assert result.success
        assert result.items == []


class TestReliefWebRequest:
    """Unit tests for the outbound query."""

    def test_posts_query_body(self, stub_fetcher):
        fetcher = stub_fetcher(SAMPLE_RESPONSE)
        ReliefWebSource(fetcher, appname="test-app").fetch({"days": "7"})

        call = fetcher.calls[0]
        assert call["kind"] == "json"
        assert call["url"] == RELIEFWEB_REPORTS_URL
        assert call["method"] == "POST"
        assert call["json_body"] == build_query(7, "test-app")

    def test_query_shape(self):
        body = build_query(21, "guardian360")
        country, themes, created = body["filter"]["conditions"]

        assert body["appname"] == "guardian360"
        assert body["limit"] == RESULT_LIMIT == 30
        assert country == {"field": "primary_country.name", "value": "South Africa"}
        assert themes["operator"] == "OR"
        assert [c["value"] for c in themes["conditions"]] == [
            "Safety and Security", "Protection and Human Rights", "Health",
        ]
        assert created == {"field": "date.created", "value": {"from": "now-21d"}}

    @pytest.mark.parametrize("raw, expected", [
        (None, "now-21d"),
        ("", "now-21d"),
        ("0", "now-1d"),
        ("9999", "now-60d"),
        ("abc", "now-21d"),
        ("14", "now-14d"),
        ("-5", "now-1d"),
    ])
    def test_days_parameter_clamped(self, stub_fetcher, raw, expected):
        fetcher = stub_fetcher({"data": []})
        ReliefWebSource(fetcher).fetch({"days": raw})
        assert _days_sent(fetcher) == expected


class TestReliefWebFailures:
    """Failures SHALL degrade to an empty result, never raise."""

    def test_fetch_error_gives_empty_list(self, failing_fetcher):
        result = ReliefWebSource(failing_fetcher).fetch()
        assert not result.success
        assert result.items_or_empty() == []

    def test_unexpected_shape_gives_empty_list(self, stub_fetcher):
        result = ReliefWebSource(stub_fetcher(["not", "an", "object"])).fetch()
        assert result.items_or_empty() == []


class TestThemeSeverity:
    """Property tests for theme-based severity."""

    @given(
        word=st.sampled_from(["Epidemic", "Conflict", "Security", "Protection"]),
        prefix=st.text(alphabet="abc, ", max_size=20),
    )
    @settings(max_examples=50)
    def test_elevated_theme_anywhere_is_4(self, word, prefix):
        assert theme_severity(prefix + word.lower()) == 4
        assert theme_severity(prefix + word.upper()) == 4

    def test_other_themes_are_3(self):
        assert theme_severity("Health, Food and Nutrition") == 3
        assert theme_severity("") == 3
