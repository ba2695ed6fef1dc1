"""Image uploads through the API act as the caller against remote storage."""

import httpx

from quill.api.deps import get_media_uploader
from quill.config import Settings, get_settings
from quill.main import app

from tests.api.conftest import ALICE


async def test_remote_upload_carries_request_bearer_token(client, monkeypatch):
    seen = []

    def handler(request):
        seen.append(request)
        return httpx.Response(200, json={"downloadTokens": "dl-1"})

    storage_client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
    monkeypatch.setattr(app.state, "storage_client", storage_client, raising=False)
    app.dependency_overrides.pop(get_media_uploader)
    app.dependency_overrides[get_settings] = lambda: Settings(
        storage_backend="http",
        storage_api_url="https://storage.test",
        storage_bucket="quill-media",
    )

    response = await client.post(
        "/api/v1/posts",
        data={"title": "Pic", "content": "Look"},
        files={"image": ("cat.png", b"png-bytes", "image/png")},
        headers=ALICE,
    )

    body = response.json()
    assert response.status_code == 201
    assert body["warning"] is None
    assert body["post"]["image_url"].endswith("?alt=media&token=dl-1")
    assert seen[0].headers["authorization"] == "Firebase token-uid-alice"
    await storage_client.aclose()
