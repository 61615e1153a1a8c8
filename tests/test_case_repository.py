import json

import httpx
import pytest

from casevalue.core.config import settings
from casevalue.core.errors import NoDataAvailable
from casevalue.data.case_repository import (
    FileCaseRepository,
    HttpCaseRepository,
    MockCaseRepository,
    case_from_record,
    case_repository,
)

LEGACY_ROWS = [
    {
        "id": 17, "case_type": "motor-vehicle-accident", "venue": "Los Angeles",
        "surgery": "Lumbar Fusion", "injuries": "herniated disc", "liab_pct": "100%",
        "pol_lim": "$250,000/$500,000", "settle": "$300,000", "acc_type": "Rear-end",
        "inject": "Epidural Steroid",
    },
    {"case_id": "18", "venue": "Kern", "settlement": 45000, "liability_pct": 60},
]


def test_record_mapping_accepts_legacy_columns():
    case = case_from_record(LEGACY_ROWS[0])
    assert case.case_id == 17
    assert case.category == "motor-vehicle-accident"
    assert case.policy_limit == "$250,000/$500,000"
    assert case.settlement == "$300,000"
    assert case.accident_type == "Rear-end"
    assert case.injection == "Epidural Steroid"


def test_record_mapping_keeps_numbers_as_text():
    case = case_from_record(LEGACY_ROWS[1])
    assert case.case_id == 18
    assert case.settlement == "45000"
    assert case.liability_pct == "60"
    assert case.surgery is None


@pytest.mark.asyncio
async def test_file_repository_reads_json(tmp_path):
    path = tmp_path / "cases.json"
    path.write_text(json.dumps(LEGACY_ROWS), encoding="utf-8")
    cases = await FileCaseRepository(str(path)).fetch_all()
    assert [c.case_id for c in cases] == [17, 18]


@pytest.mark.asyncio
async def test_missing_file_is_no_data(tmp_path):
    with pytest.raises(NoDataAvailable):
        await FileCaseRepository(str(tmp_path / "missing.json")).fetch_all()


@pytest.mark.asyncio
async def test_malformed_file_is_no_data(tmp_path):
    path = tmp_path / "cases.json"
    path.write_text("[{\"venue\": \"Kern\"}]", encoding="utf-8")
    with pytest.raises(NoDataAvailable):
        await FileCaseRepository(str(path)).fetch_all()


@pytest.mark.asyncio
async def test_http_repository_fetches_corpus():
    def handler(request: httpx.Request) -> httpx.Response:
        assert request.url.path == "/api/cases"
        return httpx.Response(200, json=LEGACY_ROWS)

    repo = HttpCaseRepository("http://store.test/api/", transport=httpx.MockTransport(handler))
    cases = await repo.fetch_all()
    assert [c.venue for c in cases] == ["Los Angeles", "Kern"]


@pytest.mark.asyncio
async def test_http_error_is_no_data():
    transport = httpx.MockTransport(lambda request: httpx.Response(502))
    with pytest.raises(NoDataAvailable):
        await HttpCaseRepository("http://store.test", transport=transport).fetch_all()


@pytest.mark.asyncio
async def test_http_malformed_payload_is_no_data():
    transport = httpx.MockTransport(lambda request: httpx.Response(200, json=[{"venue": "Kern"}]))
    with pytest.raises(NoDataAvailable):
        await HttpCaseRepository("http://store.test", transport=transport).fetch_all()


@pytest.mark.asyncio
async def test_mock_repository_is_deterministic():
    first = await MockCaseRepository(size=30).fetch_all()
    second = await MockCaseRepository(size=30).fetch_all()
    assert first == second
    assert len(first) == 30
    assert len({c.case_id for c in first}) == 30
    assert all(c.settlement.startswith("$") for c in first)


def test_factory_follows_provider_setting(monkeypatch, tmp_path):
    monkeypatch.setattr(settings, "REPOSITORY_PROVIDER", "file")
    monkeypatch.setattr(settings, "REPOSITORY_PATH", str(tmp_path / "cases.json"))
    assert isinstance(case_repository(), FileCaseRepository)

    monkeypatch.setattr(settings, "REPOSITORY_PROVIDER", "http")
    monkeypatch.setattr(settings, "REPOSITORY_BASE_URL", "http://store.test")
    assert isinstance(case_repository(), HttpCaseRepository)


def test_factory_falls_back_to_mock(monkeypatch, caplog):
    monkeypatch.setattr(settings, "REPOSITORY_PROVIDER", "http")
    monkeypatch.setattr(settings, "REPOSITORY_BASE_URL", None)
    with caplog.at_level("WARNING"):
        assert isinstance(case_repository(), MockCaseRepository)
    assert "using mock corpus" in caplog.text
