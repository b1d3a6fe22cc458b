from ilibrary.core.config import get_settings
from ilibrary.services.object_store import S3ObjectStore

PNG = b"\x89PNG\r\n\x1a\n" + b"\x00" * 64


def test_upload_and_read_back(admin_client, s3):
    r = admin_client.post(
        "/api/upload",
        params={"folder": "authors"},
        files={"file": ("my cover.png", PNG, "image/png")},
    )
    assert r.status_code == 200
    url = r.json()["url"]
    assert url.startswith("/api/uploads/authors/")
    assert url.endswith("-my-cover.png")
    assert len(s3.objects) == 1

    got = admin_client.get(url)
    assert got.status_code == 200
    assert got.content == PNG
    assert got.headers["content-type"] == "image/png"
    assert got.headers["cache-control"] == "public, max-age=86400"


def test_upload_rejects_non_images(admin_client, s3):
    r = admin_client.post("/api/upload", files={"file": ("notes.txt", b"hello", "text/plain")})
    assert r.status_code == 415
    assert s3.objects == {}


def test_upload_rejects_empty_and_oversized(admin_client, monkeypatch):
    r = admin_client.post("/api/upload", files={"file": ("empty.png", b"", "image/png")})
    assert r.status_code == 400

    monkeypatch.setattr(get_settings(), "upload_max_bytes", 16)
    r = admin_client.post("/api/upload", files={"file": ("big.png", PNG, "image/png")})
    assert r.status_code == 413


def test_upload_rejects_unknown_folder(admin_client):
    r = admin_client.post("/api/upload", params={"folder": "secrets"}, files={"file": ("a.png", PNG, "image/png")})
    assert r.status_code == 400


def test_upload_requires_session(client):
    r = client.post("/api/upload", files={"file": ("a.png", PNG, "image/png")})
    assert r.status_code == 401


def test_missing_object_is_404(client):
    assert client.get("/api/uploads/books/nothing-here.png").status_code == 404
    assert client.get("/api/uploads/private/anything.png").status_code == 404


def test_proxied_body_is_closed(admin_client, s3):
    url = admin_client.post("/api/upload", files={"file": ("c.png", PNG, "image/png")}).json()["url"]
    assert admin_client.get(url).content == PNG
    assert len(s3.opened) == 1
    assert s3.opened[0].closed


def test_abandoned_stream_still_closes_body(s3):
    store = S3ObjectStore(s3, "bucket")
    s3.put_object(Bucket="bucket", Key="books/a.png", Body=PNG, ContentType="image/png")
    obj = store.retrieve("books/a.png")
    next(obj.body)
    obj.body.close()
    assert s3.opened[0].closed
