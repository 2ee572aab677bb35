import httpx
import pytest
from fastapi.testclient import TestClient

from main import create_app
from services.key_manager import KeyManager
from services.llm_router import LLMRouter
from services.storage_service import MemoryKeyValueStore

HEADERS = {"X-User-Id": "user-42"}


@pytest.fixture
def client():
    router = LLMRouter(key_manager=KeyManager({}))
    with TestClient(create_app(kv_store=MemoryKeyValueStore(), llm_router=router)) as c:
        yield c


def test_health_check(client):
    assert client.get("/api/v1/health-check").json()["status"] == "ok"


def test_missing_user_header_is_401(client):
    assert client.get("/api/v1/journal").status_code == 401


def test_create_list_delete_entry(client):
    resp = client.post(
        "/api/v1/journal",
        json={"text": "Slept 5 hours, felt very stressed and anxious, had a headache"},
        headers=HEADERS,
    )
    assert resp.status_code == 200
    body = resp.json()
    assert body["analysis"]["metrics"]["sleepHours"] == 5
    assert body["analysis"]["scores"]["sleepScore"] == 63
    entry_id = body["entry"]["id"]

    listed = client.get("/api/v1/journal", headers=HEADERS).json()
    assert [e["id"] for e in listed] == [entry_id]

    assert client.delete(f"/api/v1/journal/{entry_id}", headers=HEADERS).status_code == 200
    assert client.get("/api/v1/journal", headers=HEADERS).json() == []
    assert client.delete(f"/api/v1/journal/{entry_id}", headers=HEADERS).status_code == 404


def test_invalid_entries_are_rejected(client):
    assert client.post("/api/v1/journal", json={"text": ""}, headers=HEADERS).status_code == 422
    assert client.post("/api/v1/journal", json={"text": "   "}, headers=HEADERS).status_code == 400
    assert client.post("/api/v1/analysis", json={"count": 0}, headers=HEADERS).status_code == 422


def test_users_are_isolated(client):
    client.post("/api/v1/journal", json={"text": "mine"}, headers=HEADERS)
    assert client.get("/api/v1/journal", headers={"X-User-Id": "someone-else"}).json() == []


def test_analyze_defaults_to_stored_entries(client):
    client.post("/api/v1/journal", json={"text": "Slept 6 hours and did 20 minutes of yoga"}, headers=HEADERS)
    client.post("/api/v1/journal", json={"text": "Slept 8 hours, feeling great"}, headers=HEADERS)

    record = client.post("/api/v1/analysis", json={}, headers=HEADERS).json()
    assert record["entryCount"] == 2
    assert record["source"] == "fallback"
    assert record["metrics"]["sleep"]["average"] == 7
    assert len(record["insights"]) == 3

    latest = client.get("/api/v1/analysis/latest", headers=HEADERS).json()
    assert latest["timestamp"] == record["timestamp"]
    assert len(client.get("/api/v1/analysis/history", headers=HEADERS).json()) == 1

    charts = client.get("/api/v1/analysis/charts", headers=HEADERS).json()
    assert charts["series"][0]["hours"] == 7
    assert charts["comparison"] is None


def test_analyze_explicit_empty_entries_returns_default(client):
    record = client.post("/api/v1/analysis", json={"entries": []}, headers=HEADERS).json()
    assert record["metrics"]["sleep"]["average"] == 7.5
    assert record["metrics"]["mentalHealth"]["averageScore"] == 80
    assert client.get("/api/v1/analysis/latest", headers=HEADERS).json() is None


def test_analyze_uses_llm_when_configured():
    def handler(request):
        content = (
            '{"metrics": {"sleep": {"average": 6.5, "quality": 81, "trend": "stable"}},'
            ' "insights": ["LLM insight"], "recommendations": ["LLM tip"]}'
        )
        return httpx.Response(200, json={"choices": [{"message": {"content": content}}]})

    router = LLMRouter(key_manager=KeyManager({"openai": ["k"]}), transport=httpx.MockTransport(handler))
    with TestClient(create_app(kv_store=MemoryKeyValueStore(), llm_router=router)) as c:
        record = c.post("/api/v1/analysis", json={"entries": ["Slept 6 hours"]}, headers=HEADERS).json()
        providers = c.get("/api/v1/analysis/providers").json()

    assert record["source"] == "llm"
    assert record["insights"][0] == "LLM insight"
    assert len(record["recommendations"]) == 3
    assert providers[0]["name"] == "openai"


def test_snapshots(client):
    goals = {"goals": [{"title": "Walk daily", "completed": False}], "habits": [{"name": "walk", "streak": 3}]}
    assert client.put("/api/v1/snapshots/goals", json=goals, headers=HEADERS).status_code == 200
    stored = client.get("/api/v1/snapshots/goals", headers=HEADERS).json()
    assert stored["habits"][0]["streak"] == 3
    assert stored["timestamp"] is not None

    client.put("/api/v1/snapshots/nutrition", json={"meals": [], "waterIntake": 5}, headers=HEADERS)
    assert client.get("/api/v1/snapshots/nutrition", headers=HEADERS).json()["waterIntake"] == 5


def test_report_and_download(client):
    client.post("/api/v1/journal", json={"text": "Slept 7 hours, 30 minutes of walking"}, headers=HEADERS)
    client.post("/api/v1/analysis", json={}, headers=HEADERS)

    report = client.get("/api/v1/reports", params={"period": "month"}, headers=HEADERS).json()
    assert report["overview"]["totalEntries"] == 1
    assert report["healthScore"] > 0

    assert client.get("/api/v1/reports", params={"period": "decade"}, headers=HEADERS).status_code == 400

    download = client.get("/api/v1/reports/download", headers=HEADERS)
    assert download.status_code == 200
    assert download.headers["content-type"].startswith("text/plain")
    assert "attachment; filename=\"health-report-week-" in download.headers["content-disposition"]
    assert "Sleep Analysis:" in download.text


def test_journal_insights_summary(client):
    empty = client.get("/api/v1/journal/insights", headers=HEADERS).json()
    assert empty["analysisCount"] == 0

    client.post("/api/v1/journal", json={"text": "Slept 6 hours, had a headache"}, headers=HEADERS)
    summary = client.get("/api/v1/journal/insights", headers=HEADERS).json()
    assert summary["analysisCount"] == 1
    assert summary["metrics"]["symptoms"] == ["headache"]


def test_naive_and_aware_timestamps_can_be_mixed(client):
    client.post("/api/v1/journal", json={"text": "Slept 7 hours, had a headache"}, headers=HEADERS)
    naive = client.post(
        "/api/v1/journal",
        json={"text": "Slept 6 hours, had a headache", "created_at": "2026-10-17T08:00:00"},
        headers=HEADERS,
    )
    assert naive.status_code == 200
    assert naive.json()["entry"]["createdAt"] in ("2026-10-17T08:00:00Z", "2026-10-17T08:00:00+00:00")

    listed = client.get("/api/v1/journal", headers=HEADERS)
    assert listed.status_code == 200
    assert len(listed.json()) == 2

    assert client.post("/api/v1/analysis", json={}, headers=HEADERS).json()["entryCount"] == 2
    assert client.get("/api/v1/reports", headers=HEADERS).status_code == 200
    assert client.get("/api/v1/reports/download", headers=HEADERS).status_code == 200
