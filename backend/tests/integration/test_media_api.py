"""Integration tests for the media library."""

from pathlib import Path

import pytest
from httpx import AsyncClient

from adapters.storage import LocalStorageAdapter, storage_adapter
from infrastructure.config.settings import settings

pytestmark = pytest.mark.asyncio

PNG_BYTES = b"\x89PNG\r\n\x1a\n" + b"\x00" * 64


@pytest.fixture
def storage(app, tmp_path) -> LocalStorageAdapter:
    adapter = LocalStorageAdapter(base_path=str(tmp_path), base_url="http://test")
    app.dependency_overrides[storage_adapter] = lambda: adapter
    return adapter


async def upload(client: AsyncClient, name: str = "falcon.png", data: bytes = PNG_BYTES,
                 mime: str = "image/png", **form):
    return await client.post("/api/media", files={"file": (name, data, mime)}, data=form)


class TestUpload:
    async def test_upload_image(self, author_client: AsyncClient, storage, tmp_path, author_user):
        response = await upload(author_client, alt_text="Falcon 9 on the pad")

        assert response.status_code == 201
        data = response.json()
        assert data["file_type"] == "image"
        assert data["mime_type"] == "image/png"
        assert data["file_size"] == len(PNG_BYTES)
        assert data["alt_text"] == "Falcon 9 on the pad"
        assert data["user_id"] == author_user.id
        assert data["file_url"].startswith("http://test/uploads/")

        key = data["file_url"].removeprefix("http://test/uploads/")
        assert (Path(tmp_path) / key).read_bytes() == PNG_BYTES

    async def test_document_upload(self, author_client: AsyncClient, storage):
        response = await upload(author_client, "brief.pdf", b"%PDF-1.4", "application/pdf")
        assert response.json()["file_type"] == "document"

    async def test_unsupported_type(self, author_client: AsyncClient, storage):
        response = await upload(author_client, "tool.exe", b"MZ", "application/x-msdownload")
        assert response.status_code == 400
        assert response.json()["detail"] == "Unsupported file type: application/x-msdownload"

    async def test_empty_file(self, author_client: AsyncClient, storage):
        response = await upload(author_client, data=b"")
        assert response.status_code == 400
        assert response.json()["detail"] == "Empty file"

    async def test_too_large(self, author_client: AsyncClient, storage, monkeypatch):
        monkeypatch.setattr(settings, "media_max_upload_bytes", 1024)
        response = await upload(author_client, data=b"\x00" * 2048)
        assert response.status_code == 413

    async def test_readers_cannot_upload(self, user_client: AsyncClient, storage):
        response = await upload(user_client)
        assert response.status_code == 403


class TestLibrary:
    async def test_list_own_uploads_with_filter(
        self, author_client: AsyncClient, editor_client: AsyncClient, storage
    ):
        await upload(author_client)
        await upload(author_client, "brief.pdf", b"%PDF-1.4", "application/pdf")
        await upload(editor_client, "editor.png")

        mine = (await author_client.get("/api/media")).json()
        assert mine["total"] == 2

        images = (await author_client.get("/api/media", params={"file_type": "image"})).json()
        assert [item["file_name"] for item in images["items"]] == ["falcon.png"]

        everything = (await editor_client.get("/api/media")).json()
        assert everything["total"] == 3

    async def test_update_metadata(self, author_client: AsyncClient, storage):
        media_id = (await upload(author_client)).json()["id"]

        response = await author_client.patch(
            f"/api/media/{media_id}", json={"caption": "Static fire", "alt_text": None}
        )
        assert response.status_code == 200
        assert response.json()["caption"] == "Static fire"
        assert response.json()["alt_text"] is None

    async def test_other_author_cannot_modify(
        self, author_client: AsyncClient, client_factory, make_user, storage
    ):
        media_id = (await upload(author_client)).json()["id"]
        rival = await client_factory(await make_user("author", username="rival"))

        response = await rival.patch(f"/api/media/{media_id}", json={"caption": "Mine now"})
        assert response.status_code == 403
        assert response.json()["detail"] == "You can only modify your own media"

    async def test_delete_removes_file(self, author_client: AsyncClient, storage, tmp_path):
        data = (await upload(author_client)).json()
        key = data["file_url"].removeprefix("http://test/uploads/")

        response = await author_client.delete(f"/api/media/{data['id']}")
        assert response.status_code == 204
        assert not (Path(tmp_path) / key).exists()
        assert (await author_client.get(f"/api/media/{data['id']}")).status_code == 404
