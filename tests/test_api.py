import io

import pytest
from fastapi.testclient import TestClient
from PIL import Image

from main import app
import services.upload_service as upload_service
from services.imaging.policy import MAX_FILE_SIZE

from gen_test_images import make_jpeg, make_png


@pytest.fixture(scope="module")
def client():
    with TestClient(app) as c:
        yield c


def _real_png() -> bytes:
    buf = io.BytesIO()
    Image.radial_gradient("L").convert("RGB").save(buf, format="PNG")
    return buf.getvalue()


def test_validate_accepts_png(client):
    files = {"photo": ("avatar.png", make_png(120, 80), "image/png")}
    r = client.post("/photos/validate", files=files, data={"task_id": "req-1"})

    assert r.status_code == 200
    js = r.json()
    assert js["request_id"] == "req-1"
    assert js["success"] is True
    assert js["data"]["dimensions"] == {"width": 120, "height": 80}
    assert js["data"]["mimeType"] == "image/png"
    assert js["data"]["sizeBytes"] == 100


def test_validate_rejects_signature_mismatch(client):
    files = {"photo": ("avatar.png", make_jpeg(120, 80), "image/png")}
    r = client.post("/photos/validate", files=files)

    assert r.status_code == 400
    js = r.json()
    assert js["success"] is False
    assert js["reasonCode"] == "invalid_signature"
    assert "signature" in js["error"]
    assert js["request_id"].startswith("avatar_")


def test_validate_rejects_oversized_upload(client):
    files = {"photo": ("big.png", make_png(100, 100, size=MAX_FILE_SIZE + 1), "image/png")}
    r = client.post("/photos/validate", files=files)

    assert r.status_code == 400
    assert r.json()["reasonCode"] == "file_too_large"


def test_validate_without_file(client):
    r = client.post("/photos/validate", data={"task_id": "nofile"})

    assert r.status_code == 400
    js = r.json()
    assert js["reasonCode"] == "no_file_uploaded"
    assert js["request_id"] == "nofile"


def test_validate_empty_file_is_too_small(client):
    r = client.post("/photos/validate", files={"photo": ("a.png", b"", "image/png")})

    assert r.status_code == 400
    assert r.json()["reasonCode"] == "file_too_small"


def test_process_returns_webp(client):
    data = _real_png()
    files = {"photo": ("gradient.png", data, "image/png")}
    r = client.post("/photos/process", files=files)

    assert r.status_code == 201
    assert r.headers["content-type"] == "image/webp"
    assert r.headers["x-original-mime-type"] == "image/png"
    assert r.headers["x-original-size"] == str(len(data))
    assert r.headers["x-processed-size"] == str(len(r.content))
    assert r.headers["x-image-width"] == "256"
    assert r.headers["x-image-height"] == "256"
    assert r.content[8:12] == b"WEBP"


def test_process_rejects_before_processing(client):
    files = {"photo": ("notes.txt", _real_png(), "image/png")}
    r = client.post("/photos/process", files=files)

    assert r.status_code == 400
    assert r.json()["reasonCode"] == "invalid_extension"


def test_process_undecodable_image_is_500(client):
    # 头部结构合法，但没有像素数据
    files = {"photo": ("stub.png", make_png(100, 100), "image/png")}
    r = client.post("/photos/process", files=files)

    assert r.status_code == 500
    js = r.json()
    assert js["success"] is False
    assert js["reasonCode"] == "processing_failed"


def test_process_unexpected_error_releases_request(client, monkeypatch):
    def boom(*args, **kwargs):
        raise EOFError("truncated stream")

    monkeypatch.setattr(upload_service, "reencode_image", boom)
    files = {"photo": ("gradient.png", _real_png(), "image/png")}
    r = client.post("/photos/process", files=files, data={"task_id": "boom-1"})

    assert r.status_code == 500
    js = r.json()
    assert js["request_id"] == "boom-1"
    assert js["reasonCode"] == "processing_failed"

    health = client.get("/photos/health").json()
    assert health["processing_count"] == 0
    assert "boom-1" not in health.get("processing_ids", [])


def test_health_reports_counts(client):
    client.post("/photos/validate", files={"photo": ("a.gif", b"GIF89a" + b"\x00" * 10, "image/gif")})
    r = client.get("/photos/health")

    assert r.status_code == 200
    js = r.json()
    assert js["status"] == "healthy"
    assert js["version"] == "1.0.0"
    assert js["total_requests"] >= 1
    assert js["rejections"].get("file_too_small", 0) >= 1
    assert js["processing_count"] == 0
