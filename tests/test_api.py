import pytest
from fastapi.testclient import TestClient

from api.app import create_app
from api.dependencies import clear_caches, get_repo
from novel_reader.backup import BackupJobState, Category, encode

from conftest import quicknovel_novel, quicknovel_payload


@pytest.fixture
def client(tmp_path, monkeypatch):
    monkeypatch.setenv("DATABASE_URL", f"sqlite+pysqlite:///{tmp_path / 'api.db'}")
    monkeypatch.setenv("BACKUP_STORAGE_ROOT", str(tmp_path / "storage"))
    monkeypatch.setenv("DEVICE_INFO", "api-test")
    monkeypatch.delenv("REDIS_URL", raising=False)
    clear_caches()
    yield TestClient(create_app())
    clear_caches()


def test_healthz(client):
    assert client.get("/healthz").json() == {"status": "ok"}


def test_preview_native_and_foreign(client, sample_document):
    resp = client.post("/backups/preview", files={"file": ("a.novery", encode(sample_document), "application/json")})
    assert resp.status_code == 200
    body = resp.json()
    assert body["library_count"] == 2 and body["source_app"] == "Novery"

    foreign = quicknovel_payload({"result_bookmarked/1": quicknovel_novel("https://a", "A")})
    resp = client.post("/backups/preview", files={"file": ("qn.json", foreign, "application/json")})
    assert resp.status_code == 200
    assert resp.json()["source_app"] == "QuickNovel"


def test_preview_rejects_invalid_and_empty_files(client):
    resp = client.post("/backups/preview", files={"file": ("x.novery", b"nope", "application/json")})
    assert resp.status_code == 400
    resp = client.post("/backups/preview", files={"file": ("x.novery", b"", "application/json")})
    assert resp.status_code == 400


def test_restore_runs_job_in_background(client, sample_document):
    resp = client.post(
        "/backups/restore",
        files={"file": ("in.novery", encode(sample_document), "application/json")},
        data={"restore_settings": "false", "merge_with_existing": "false"},
    )
    assert resp.status_code == 200
    job_id = resp.json()["job_id"]
    assert resp.json()["location"].startswith("uploads/")

    job = client.get(f"/jobs/{job_id}").json()
    assert job["state"] == BackupJobState.COMPLETED.value
    assert job["kind"] == "restore"
    assert job["options"]["merge_with_existing"] is False
    assert job["result"]["settings_restored"] is False
    assert len(get_repo().get_all(Category.LIBRARY)) == 2


def test_export_download_and_job(client, sample_document):
    client.post("/backups/restore", files={"file": ("in.novery", encode(sample_document), "application/json")})

    resp = client.get("/backups/export")
    assert resp.status_code == 200
    assert resp.headers["content-type"].startswith("application/json")
    assert "novery_backup_" in resp.headers["content-disposition"]
    assert resp.json()["deviceInfo"] == "api-test"
    assert len(resp.json()["library"]) == 2

    resp = client.post("/backups/export")
    job_id = resp.json()["job_id"]
    assert client.get(f"/jobs/{job_id}").json()["state"] == "completed"
    listed = client.get("/backups").json()
    assert [item["location"] for item in listed] == [resp.json()["location"]]


def test_unknown_job_is_404(client):
    assert client.get("/jobs/does-not-exist").status_code == 404
