"""
Contract tests for the analytics HTTP endpoints.

The engine dependency is overridden with one over the in-memory query
source, so no database is needed.
"""

from typing import Generator

import pytest
from fastapi.testclient import TestClient

from linket_analytics.core.dependencies import get_analytics_engine
from linket_analytics.core.exceptions import QueryError
from linket_analytics.main import app
from linket_analytics.services.analytics_engine import AnalyticsEngine, EngineLimits
from linket_analytics.tests.factories import FakeQueries


@pytest.fixture
def client() -> Generator[TestClient, None, None]:
    yield TestClient(app)
    app.dependency_overrides.clear()


def use_queries(queries: FakeQueries) -> None:
    app.dependency_overrides[get_analytics_engine] = lambda: AnalyticsEngine(
        queries, limits=EngineLimits()
    )


class TestHealth:

    def test_health(self, client: TestClient) -> None:
        response = client.get("/health")

        assert response.status_code == 200
        assert response.json()["status"] == "healthy"


class TestReadAnalytics:

    def test_report_shape_and_headers(self, client: TestClient, fake_queries) -> None:
        use_queries(fake_queries)

        response = client.get("/analytics/user-tenant-1", params={"days": 7, "tz_offset": 300})

        assert response.status_code == 200
        assert response.headers["cache-control"] == "no-store"
        body = response.json()
        assert len(body["timeline"]) == 7
        assert body["meta"]["available"] is True
        assert body["meta"]["timezoneOffsetMinutes"] == 300
        assert len(body["funnel"]["steps"]) == 5
        assert [item["id"] for item in body["onboarding"]["items"]] == [
            "set_handle",
            "publish_profile",
            "add_three_links",
            "test_share",
            "publish_lead_form",
        ]
        assert [link["id"] for link in body["topLinks"]] == ["l2", "l3", "l1"]

    def test_out_of_range_params_are_clamped(self, client: TestClient) -> None:
        use_queries(FakeQueries())

        response = client.get("/analytics/t", params={"days": 500, "tz_offset": -5000})

        assert response.status_code == 200
        body = response.json()
        assert body["meta"]["days"] == 90
        assert len(body["timeline"]) == 90
        assert body["meta"]["timezoneOffsetMinutes"] == -840

    def test_huge_day_count_is_clamped(self, client: TestClient) -> None:
        use_queries(FakeQueries())

        response = client.get("/analytics/t", params={"days": "9" * 400})

        assert response.status_code == 200
        assert response.json()["meta"]["days"] == 90

    def test_defaults(self, client: TestClient) -> None:
        use_queries(FakeQueries())

        body = client.get("/analytics/t").json()

        assert body["meta"]["days"] == 30
        assert body["recentLeads"] == []

    def test_degraded_store(self, client: TestClient) -> None:
        use_queries(FakeQueries(available=False))

        response = client.get("/analytics/t", params={"days": 3})

        assert response.status_code == 200
        assert response.json()["meta"]["available"] is False

    def test_query_failure_returns_500(self, client: TestClient) -> None:
        use_queries(FakeQueries(failures={"fetch_profiles": QueryError("profiles", "timeout")}))

        response = client.get("/analytics/t")

        assert response.status_code == 500
        assert response.json()["detail"] == "Failed to load profiles: timeout"


class TestExport:

    def test_timeline_csv(self, client: TestClient) -> None:
        use_queries(FakeQueries())

        response = client.get("/analytics/t/export", params={"section": "timeline", "days": 3})

        assert response.status_code == 200
        assert response.headers["content-type"].startswith("text/csv")
        assert "attachment" in response.headers["content-disposition"]
        lines = response.text.strip().splitlines()
        assert lines[0] == "date,scans,leads"
        assert len(lines) == 4

    def test_links_csv(self, client: TestClient, fake_queries) -> None:
        use_queries(fake_queries)

        response = client.get("/analytics/t/export", params={"section": "links"})

        lines = response.text.strip().splitlines()
        assert lines[0] == "id,profileId,title,url,clickCount"
        assert lines[1].startswith("l2,p1,booking,")

    def test_unknown_section_is_rejected(self, client: TestClient) -> None:
        use_queries(FakeQueries())

        response = client.get("/analytics/t/export", params={"section": "secrets"})

        assert response.status_code == 422
