from datetime import datetime, timezone
from types import SimpleNamespace

import pytest
from azure.core.exceptions import (
    ClientAuthenticationError,
    ResourceExistsError,
    ResourceNotFoundError,
    ServiceRequestError,
)

from conftest import login, run
from smarthive.core.config import get_settings
from smarthive.services import blob_storage

CSV = (
    "time,int_temp,ext_temp,weight,battery,status\n"
    "2024-05-03 10:00:00,34.5,18.2,41.5,n/a,ok\n"
    "not-a-date,34.1,18.0,41.4,87,ok\n"
)


def day(n, hour=12):
    return datetime(2024, 5, n, hour, tzinfo=timezone.utc)


class FakeDownloader:
    def __init__(self, content):
        self.content = content

    async def readall(self):
        return self.content


class FakeContainerClient:
    def __init__(self, account, name):
        self.account = account
        self.name = name

    async def list_blobs(self):
        if self.name not in self.account.containers:
            raise ResourceNotFoundError("The specified container does not exist.")
        for name, (content, modified) in self.account.containers[self.name].items():
            yield SimpleNamespace(
                name=name,
                last_modified=modified,
                size=len(content),
                etag='"0x8DC"',
                content_settings=SimpleNamespace(content_type="text/csv"),
            )

    async def download_blob(self, name):
        blobs = self.account.containers.get(self.name, {})
        if name not in blobs:
            raise ResourceNotFoundError("The specified blob does not exist.")
        return FakeDownloader(blobs[name][0])


class FakeServiceClient:
    """Stands in for the SDK's BlobServiceClient."""

    def __init__(self):
        self.containers = {}
        self.error = None
        self.closed = 0

    def add_blob(self, container, name, content, modified):
        if isinstance(content, str):
            content = content.encode("utf-8")
        self.containers.setdefault(container, {})[name] = (content, modified)

    async def list_containers(self):
        if self.error is not None:
            raise self.error
        for name in self.containers:
            yield SimpleNamespace(name=name, last_modified=day(1))

    def get_container_client(self, name):
        return FakeContainerClient(self, name)

    async def create_container(self, name):
        if name in self.containers:
            raise ResourceExistsError("The specified container already exists.")
        self.containers[name] = {}

    async def close(self):
        self.closed += 1


@pytest.fixture
def azure(monkeypatch):
    account = FakeServiceClient()
    monkeypatch.setattr(get_settings(), "azure_storage_connection_string", "UseDevelopmentStorage=true")
    monkeypatch.setattr(
        blob_storage,
        "BlobServiceClient",
        SimpleNamespace(from_connection_string=lambda connection_string: account),
    )
    return account


def test_containers_admin_only(client, seed_user, azure):
    seed_user("bee@example.com")
    seed_user("admin@example.com", role="admin")
    azure.add_blob("hive-1", "a.csv", CSV, day(1))
    azure.add_blob("hive-1", "b.csv", CSV, day(2))
    azure.containers["hive-2"] = {}

    assert client.get("/api/smart-hive/containers").status_code == 401

    login(client, "bee@example.com")
    res = client.get("/api/smart-hive/containers")
    assert res.status_code == 403

    login(client, "admin@example.com")
    res = client.get("/api/smart-hive/containers")
    assert res.status_code == 200, res.text
    body = res.json()
    assert body["success"] is True
    assert body["total"] == 2
    assert [(c["name"], c["blobCount"]) for c in body["data"]] == [("hive-1", 2), ("hive-2", 0)]
    assert azure.closed


def test_blob_count_is_capped(azure):
    for n in range(1, 5):
        azure.add_blob("hive-1", f"{n}.csv", CSV, day(n))

    containers = run(blob_storage.BlobStorage(azure).list_containers(max_blob_count=2))
    assert containers[0].blob_count == 2


def test_storage_not_configured(admin_client, monkeypatch):
    monkeypatch.setattr(get_settings(), "azure_storage_connection_string", None)
    res = admin_client.get("/api/smart-hive/containers")
    assert res.status_code == 500
    assert res.json() == {
        "success": False,
        "error": "Azure Storage not configured. Please contact support.",
    }


@pytest.mark.parametrize(
    "error, status, message",
    [
        (ServiceRequestError("connection refused"), 503,
         "Could not connect to Azure Storage. Please check configuration."),
        (ClientAuthenticationError("bad key"), 500,
         "Azure Storage authentication failed. Please check credentials."),
        (ResourceNotFoundError("gone"), 500, "Failed to fetch containers. Please try again."),
    ],
)
def test_storage_failures(admin_client, azure, error, status, message):
    azure.error = error
    res = admin_client.get("/api/smart-hive/containers")
    assert res.status_code == status
    assert res.json() == {"success": False, "error": message}


def test_create_container(admin_client, azure):
    res = admin_client.post("/api/smart-hive/containers", json={"containerName": "hive-3"})
    assert res.status_code == 201
    assert res.json()["data"] == {"name": "hive-3", "created": True}
    assert "hive-3" in azure.containers

    res = admin_client.post("/api/smart-hive/containers", json={"containerName": "hive-3"})
    assert res.status_code == 200
    assert res.json()["message"] == "Container already exists"
    assert res.json()["data"]["created"] is False

    res = admin_client.post("/api/smart-hive/containers", json={})
    assert res.status_code == 400
    assert res.json()["error"] == "Container name is required"

    for name in ("Hive_3", "ab", "hive--3", "-hive"):
        res = admin_client.post("/api/smart-hive/containers", json={"containerName": name})
        assert res.status_code == 400
        assert res.json()["error"].startswith("Invalid container name")


def test_latest_readings(admin_client, azure):
    azure.add_blob("hive-1", "older.csv", CSV, day(2))
    azure.add_blob("hive-1", "newest.csv", CSV, day(3))

    res = admin_client.get("/api/smart-hive/data/latest", params={"containerId": "hive-1"})
    assert res.status_code == 200, res.text
    body = res.json()
    assert body["containerId"] == "hive-1"
    assert body["totalBlobs"] == 2
    assert body["summary"]["totalRecords"] == 2
    assert body["summary"]["latestBlobTimestamp"] == "2024-05-03T12:00:00+00:00"

    [blob] = body["data"]
    assert blob["blobInfo"]["name"] == "newest.csv"
    assert blob["blobInfo"]["contentType"] == "text/csv"
    assert blob["recordCount"] == 2

    first, second = blob["data"]
    assert first["int_temp"] == 34.5
    assert first["weight"] == 41.5
    assert first["battery"] is None
    assert first["status"] == "ok"
    assert first["timestamp"] == "2024-05-03T10:00:00+00:00"
    assert first["_metadata"]["hasOriginalTimestamp"] is True
    assert first["_metadata"]["blobName"] == "newest.csv"

    # Unparseable CSV time falls back to the blob's last-modified time
    assert second["battery"] == 87
    assert second["timestamp"] == "2024-05-03T12:00:00+00:00"
    assert second["_metadata"]["hasOriginalTimestamp"] is False


def test_latest_count(admin_client, azure):
    for n in range(1, 4):
        azure.add_blob("hive-1", f"{n}.csv", CSV, day(n))

    body = admin_client.get(
        "/api/smart-hive/data/latest", params={"containerId": "hive-1", "count": 2}
    ).json()
    assert [b["blobInfo"]["name"] for b in body["data"]] == ["3.csv", "2.csv"]
    assert body["summary"]["oldestBlobTimestamp"] == "2024-05-02T12:00:00+00:00"

    res = admin_client.get("/api/smart-hive/data/latest", params={"containerId": "hive-1", "count": 0})
    assert res.status_code == 400


def test_latest_skips_unreadable_blob(admin_client, azure):
    azure.add_blob("hive-1", "good.csv", CSV, day(1))
    azure.add_blob("hive-1", "empty.csv", b"", day(2))

    body = admin_client.get(
        "/api/smart-hive/data/latest", params={"containerId": "hive-1", "count": 2}
    ).json()
    assert [b["blobInfo"]["name"] for b in body["data"]] == ["good.csv"]
    assert body["totalBlobs"] == 2


def test_latest_empty_and_unknown_container(admin_client, azure):
    azure.containers["hive-1"] = {}
    res = admin_client.get("/api/smart-hive/data/latest", params={"containerId": "hive-1"})
    assert res.status_code == 200
    assert res.json()["data"] == []
    assert res.json()["message"] == "No blobs found in container: hive-1"

    res = admin_client.get("/api/smart-hive/data/latest", params={"containerId": "nope"})
    assert res.status_code == 404
    assert res.json()["error"] == "Container not found: nope"


@pytest.mark.parametrize("path", ["/api/smart-hive/data/latest", "/api/smart-hive/data/historical"])
def test_container_id_required(admin_client, azure, path):
    res = admin_client.get(path)
    assert res.status_code == 400
    assert res.json() == {"success": False, "error": "containerId parameter is required"}


def test_readings_require_session(client, azure):
    res = client.get("/api/smart-hive/data/latest", params={"containerId": "hive-1"})
    assert res.status_code == 401


def test_user_limited_to_assigned_containers(client, seed_user, seed_purchase, azure):
    user_id = seed_user("bee@example.com")
    seed_purchase(user_id, access_granted=True, containers=["hive-1"])
    azure.add_blob("hive-1", "a.csv", CSV, day(1))
    azure.add_blob("hive-2", "b.csv", CSV, day(1))
    login(client, "bee@example.com")

    for path in ("/api/smart-hive/data/latest", "/api/smart-hive/data/historical"):
        assert client.get(path, params={"containerId": "hive-1"}).status_code == 200

        res = client.get(path, params={"containerId": "hive-2"})
        assert res.status_code == 403
        assert res.json() == {"success": False, "error": "Access denied to this container"}


def test_pending_purchase_has_no_container_access(client, seed_user, seed_purchase, azure):
    user_id = seed_user("bee@example.com")
    seed_purchase(user_id, containers=["hive-1"])
    azure.add_blob("hive-1", "a.csv", CSV, day(1))
    login(client, "bee@example.com")

    res = client.get("/api/smart-hive/data/latest", params={"containerId": "hive-1"})
    assert res.status_code == 403


def test_historical_readings(admin_client, azure):
    for n in range(1, 4):
        azure.add_blob("hive-1", f"{n}.csv", f"time,weight\n2024-05-0{n} 08:00:00,{40 + n}\n", day(n))
    azure.add_blob("hive-1", "broken.csv", b"", day(4))

    res = admin_client.get(
        "/api/smart-hive/data/historical",
        params={"containerId": "hive-1", "dateFrom": "2024-05-02T00:00:00Z"},
    )
    assert res.status_code == 200, res.text
    body = res.json()
    assert body["totalFiles"] == 3
    assert body["totalRecords"] == 2
    assert [row["weight"] for row in body["data"]] == [43, 42]
    assert body["data"][0]["timestamp"] == "2024-05-03T08:00:00+00:00"
    assert body["data"][0]["_metadata"]["sourceBlob"] == "3.csv"
    assert [e["blob"] for e in body["processingErrors"]] == ["broken.csv"]
    assert body["metadata"]["dateRange"] == {"from": "2024-05-02T00:00:00+00:00", "to": None}

    body = admin_client.get(
        "/api/smart-hive/data/historical",
        params={"containerId": "hive-1", "dateTo": "2024-05-02T23:59:59Z", "limit": 1},
    ).json()
    assert body["metadata"]["requestedLimit"] == 1
    assert [row["_metadata"]["sourceBlob"] for row in body["data"]] == ["2.csv"]
