"""Evidence Routes — validation endpoint and stored-pack reads."""

import json

import pytest

from research_core.config import Settings, get_settings
from research_core.main import app
from tests.core.evidence_factory import make_excerpt, make_pack, make_record


@pytest.fixture
def two_record_pack() -> dict:
    return make_pack([
        make_record("EV-001", excerpts=[make_excerpt("E1"), make_excerpt("E2")]),
        make_record("EV-002", type="dataset", verified=False),
    ])


@pytest.fixture
def artifacts_root(tmp_path):
    app.dependency_overrides[get_settings] = lambda: Settings(artifacts_root=str(tmp_path))
    return tmp_path


async def test_validate_returns_summary(client, two_record_pack):
    res = await client.post("/api/v1/evidence/validate", json=two_record_pack)
    assert res.status_code == 200
    assert res.json() == {
        "thread_id": "RS-20260105-demo",
        "total_records": 2,
        "verified": 1,
        "unverified": 1,
        "total_excerpts": 2,
        "by_type": {"paper": 1, "dataset": 1},
    }


async def test_validate_reports_first_violation(client):
    pack = make_pack([make_record("EV-001", type="book")])
    res = await client.post("/api/v1/evidence/validate", json=pack)
    assert res.status_code == 400
    error = res.json()["error"]
    assert error["code"] == "EVIDENCE_PACK_INVALID"
    assert error["field"] == "type"
    assert "'book'" in error["message"]


async def test_validate_rejects_non_object(client):
    res = await client.post("/api/v1/evidence/validate", json=[1, 2, 3])
    assert res.status_code == 400
    assert res.json()["error"]["field"] == "<root>"


async def test_stored_pack_is_served(client, artifacts_root, two_record_pack):
    target = artifacts_root / "artifacts" / "RS-20260105-demo" / "evidence.json"
    target.parent.mkdir(parents=True)
    target.write_text(json.dumps(two_record_pack), encoding="utf-8")

    res = await client.get("/api/v1/evidence/RS-20260105-demo")
    assert res.status_code == 200
    assert res.json()["summary"]["total_excerpts"] == 2
    assert res.json()["pack"] == two_record_pack

    res = await client.get("/api/v1/evidence/RS-20260105-demo", params={"format": "markdown"})
    assert res.headers["content-type"].startswith("text/markdown")
    assert res.text.startswith("# Evidence Pack: RS-20260105-demo")


async def test_missing_stored_pack_returns_404(client, artifacts_root):
    res = await client.get("/api/v1/evidence/RS-none")
    assert res.status_code == 404


async def test_corrupt_stored_pack_returns_400(client, artifacts_root):
    target = artifacts_root / "artifacts" / "RS-bad" / "evidence.json"
    target.parent.mkdir(parents=True)
    target.write_text("{not json", encoding="utf-8")
    res = await client.get("/api/v1/evidence/RS-bad")
    assert res.status_code == 400
    assert res.json()["error"]["message"] == "Evidence pack is not valid JSON"


async def test_non_utf8_stored_pack_returns_400(client, artifacts_root):
    target = artifacts_root / "artifacts" / "RS-latin" / "evidence.json"
    target.parent.mkdir(parents=True)
    target.write_bytes(b'{"version": "\xff\xfe"}')
    res = await client.get("/api/v1/evidence/RS-latin")
    assert res.status_code == 400
    error = res.json()["error"]
    assert error["code"] == "EVIDENCE_PACK_INVALID"
    assert error["message"] == "Evidence pack is not valid UTF-8"
    assert error["field"] == "<root>"


async def test_unreadable_stored_pack_returns_400(client, artifacts_root):
    (artifacts_root / "artifacts" / "RS-dir" / "evidence.json").mkdir(parents=True)
    res = await client.get("/api/v1/evidence/RS-dir")
    assert res.status_code == 400
    assert res.json()["error"]["message"] == "Evidence pack failed to load"
