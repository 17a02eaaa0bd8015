"""
Integration tests for the hero background API.
"""

import io

import pytest
from PIL import Image

from backend.app.models.hero_background import HeroBackground
from backend.app.services.cache import cache_store
from backend.app.services.cache_invalidation import HERO_BACKGROUNDS_KEY


def hero_image(name="hero.jpg", size=(1920, 805), image_format="JPEG"):
    buffer = io.BytesIO()
    Image.new("RGB", size, "navy").save(buffer, image_format)
    return ("images", (name, buffer.getvalue(), f"image/{image_format.lower()}"))


@pytest.fixture
def make_background(db_session):
    async def factory(path):
        item = HeroBackground(image_path=path)
        db_session.add(item)
        await db_session.commit()
        await db_session.refresh(item)
        return item
    return factory


# TEST 1: Upload

@pytest.mark.asyncio
async def test_admin_uploads_hero_backgrounds(client, admin_headers, storage):
    response = await client.post(
        "/v1/admin/hero-backgrounds",
        files=[hero_image("one.jpg"), hero_image("two.png", image_format="PNG")],
        headers=admin_headers,
    )
    assert response.status_code == 201
    body = response.json()
    assert body["message"] == "Images uploaded successfully"
    assert body["meta"] == {"count": 2, "max": 5}
    for item in body["data"]:
        assert item["image_path"].startswith("hero-bg/")
        assert item["url"].endswith(f"/storage/{item['image_path']}")
        assert storage.exists(item["image_path"])


@pytest.mark.asyncio
@pytest.mark.parametrize("size", [(1920, 799), (1920, 811), (1280, 805)])
async def test_wrong_dimensions_are_rejected(client, admin_headers, size):
    response = await client.post("/v1/admin/hero-backgrounds", files=[hero_image(size=size)], headers=admin_headers)
    assert response.status_code == 422
    assert response.json()["errors"]["images"] == ["Images must be 1920px wide and 800-810px tall."]


@pytest.mark.asyncio
async def test_upload_requires_images(client, admin_headers):
    response = await client.post("/v1/admin/hero-backgrounds", headers=admin_headers)
    assert response.status_code == 422
    assert response.json()["errors"]["images"] == ["Please select at least one image to upload."]


@pytest.mark.asyncio
async def test_unsupported_type_is_rejected(client, admin_headers):
    response = await client.post(
        "/v1/admin/hero-backgrounds",
        files=[hero_image("hero.gif", image_format="GIF")],
        headers=admin_headers,
    )
    assert response.status_code == 422
    assert response.json()["errors"]["images"] == ["Allowed image types: jpeg, png, jpg, webp."]


@pytest.mark.asyncio
async def test_more_than_five_per_request_is_rejected(client, admin_headers):
    response = await client.post(
        "/v1/admin/hero-backgrounds",
        files=[hero_image(f"{i}.jpg") for i in range(6)],
        headers=admin_headers,
    )
    assert response.status_code == 422
    assert response.json()["errors"]["images"] == ["You can upload up to 5 images at a time."]


@pytest.mark.asyncio
async def test_total_limit_counts_stored_images(client, admin_headers, make_background, storage):
    for i in range(4):
        await make_background(f"hero-bg/existing-{i}.jpg")

    response = await client.post(
        "/v1/admin/hero-backgrounds",
        files=[hero_image("a.jpg"), hero_image("b.jpg")],
        headers=admin_headers,
    )
    assert response.status_code == 422
    assert response.json()["message"] == "Upload limit exceeded: a maximum of 5 images is allowed"
    assert not (storage.root / "hero-bg").exists()


@pytest.mark.asyncio
async def test_failed_upload_removes_written_files(client, admin_headers, storage, mocker):
    written = []
    real_save = storage.save

    def save_once(image, folder):
        if written:
            raise OSError("disk full")
        written.append(real_save(image, folder))
        return written[0]

    mocker.patch.object(storage, "save", side_effect=save_once)

    response = await client.post(
        "/v1/admin/hero-backgrounds",
        files=[hero_image("a.jpg"), hero_image("b.jpg")],
        headers=admin_headers,
    )
    assert response.status_code == 500
    assert response.json()["message"] == "An error occurred while uploading images"
    assert not storage.exists(written[0])

    listing = await client.get("/v1/admin/hero-backgrounds", headers=admin_headers)
    assert listing.json()["meta"]["count"] == 0


@pytest.mark.asyncio
async def test_staff_cannot_upload(client, staff_headers):
    response = await client.post("/v1/admin/hero-backgrounds", files=[hero_image()], headers=staff_headers)
    assert response.status_code == 403


# TEST 2: Listing

@pytest.mark.asyncio
async def test_admin_list_is_oldest_first(client, staff_headers, make_background):
    first = await make_background("hero-bg/first.jpg")
    second = await make_background("hero-bg/second.jpg")

    response = await client.get("/v1/admin/hero-backgrounds", headers=staff_headers)
    assert response.status_code == 200
    body = response.json()
    assert [item["id"] for item in body["data"]] == [first.id, second.id]
    assert body["meta"] == {"count": 2, "max": 5}


@pytest.mark.asyncio
async def test_admin_list_requires_authentication(client):
    response = await client.get("/v1/admin/hero-backgrounds")
    assert response.status_code == 401


@pytest.mark.asyncio
async def test_frontend_list_is_cached_until_next_write(client, admin_headers, make_background):
    await make_background("hero-bg/first.jpg")

    first = await client.get("/v1/hero-backgrounds")
    assert first.status_code == 200
    assert [url.rsplit("/", 1)[-1] for url in first.json()["data"]] == ["first.jpg"]
    assert HERO_BACKGROUNDS_KEY in cache_store

    # Rows written behind the service are not visible until a write forgets the entry
    await make_background("hero-bg/second.jpg")
    assert len((await client.get("/v1/hero-backgrounds")).json()["data"]) == 1

    response = await client.post("/v1/admin/hero-backgrounds", files=[hero_image()], headers=admin_headers)
    assert response.status_code == 201

    body = (await client.get("/v1/hero-backgrounds")).json()
    assert len(body["data"]) == 3
    assert body["meta"] == {"count": 3, "max": 5}


# TEST 3: Delete

@pytest.mark.asyncio
async def test_delete_removes_file_and_refreshes_frontend(client, admin_headers, storage):
    created = await client.post(
        "/v1/admin/hero-backgrounds",
        files=[hero_image("a.jpg"), hero_image("b.jpg")],
        headers=admin_headers,
    )
    doomed, kept = created.json()["data"]
    assert len((await client.get("/v1/hero-backgrounds")).json()["data"]) == 2

    response = await client.delete(f"/v1/admin/hero-backgrounds/{doomed['id']}", headers=admin_headers)
    assert response.status_code == 200
    body = response.json()
    assert body["message"] == "Image deleted successfully"
    assert [item["id"] for item in body["data"]] == [kept["id"]]
    assert not storage.exists(doomed["image_path"])

    assert (await client.get("/v1/hero-backgrounds")).json()["data"] == [kept["url"]]


@pytest.mark.asyncio
async def test_delete_missing_image_is_404(client, admin_headers):
    response = await client.delete("/v1/admin/hero-backgrounds/999", headers=admin_headers)
    assert response.status_code == 404
    assert response.json()["message"] == "Image not found"
