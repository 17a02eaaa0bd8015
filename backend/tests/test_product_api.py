"""
Integration tests for the product catalog API.
"""

import io
from datetime import datetime, timedelta, timezone

import pytest
from PIL import Image

from backend.app.main import cache_invalidator
from backend.app.models.enums import ProductType
from backend.app.models.newsletter_subscription import NewsletterSubscription
from backend.app.models.principal import Principal
from backend.app.models.product import Product
from backend.app.services.cache import cache_store
from backend.app.services.cache_invalidation import TagInvalidationStrategy


def _png_bytes():
    buffer = io.BytesIO()
    Image.new("RGB", (4, 4), "white").save(buffer, "PNG")
    return buffer.getvalue()


PNG = _png_bytes()
BASE_TIME = datetime(2025, 4, 1, 8, 0, tzinfo=timezone.utc)


@pytest.fixture
def make_product(db_session):
    async def factory(name, product_type=ProductType.MEDICAL_SUPPLIES, minutes=0, **fields):
        created = BASE_TIME + timedelta(minutes=minutes)
        product = Product(
            name=name,
            product_type=product_type,
            images=fields.pop("images", []),
            features=fields.pop("features", []),
            created_at=created,
            updated_at=created,
            **fields,
        )
        db_session.add(product)
        await db_session.commit()
        await db_session.refresh(product)
        return product
    return factory


@pytest.fixture
async def principal(db_session):
    principal = Principal(name="Medline", description="Global manufacturer", is_featured=True)
    db_session.add(principal)
    await db_session.commit()
    await db_session.refresh(principal)
    return principal


# TEST 1: Public list and filters

@pytest.mark.asyncio
async def test_filter_by_product_type(client, make_product):
    await make_product("Gauze", ProductType.MEDICAL_SUPPLIES)
    await make_product("Ventilator", ProductType.MEDICAL_EQUIPMENT)

    response = await client.get("/v1/products", params={"productType": "medical_equipment"})
    assert response.status_code == 200
    body = response.json()
    assert [product["name"] for product in body["data"]] == ["Ventilator"]
    assert body["data"][0]["product_type_label"] == "Medical Equipment"
    assert "productType=medical_equipment" in body["links"]["first"]


@pytest.mark.asyncio
async def test_unknown_product_type_is_rejected(client):
    response = await client.get("/v1/products", params={"productType": "snacks"})
    assert response.status_code == 422
    assert "productType" in response.json()["errors"]


@pytest.mark.asyncio
async def test_sort_by_name(client, make_product):
    await make_product("Bandage")
    await make_product("Alcohol Swab")
    await make_product("Catheter")

    response = await client.get("/v1/products", params={"sortBy": "name", "sortOrder": "asc"})
    assert [p["name"] for p in response.json()["data"]] == ["Alcohol Swab", "Bandage", "Catheter"]


@pytest.mark.asyncio
async def test_product_types_endpoint(client):
    response = await client.get("/v1/products/types")
    assert response.json()["data"] == [
        {"value": "medical_supplies", "label": "Medical Supplies"},
        {"value": "medical_equipment", "label": "Medical Equipment"},
    ]


# TEST 2: Latest and featured

@pytest.mark.asyncio
async def test_latest_products(client, make_product):
    for i in range(4):
        await make_product(f"Item {i}", minutes=i)

    response = await client.get("/v1/products/latest", params={"limit": 2})
    body = response.json()
    assert [p["name"] for p in body["data"]] == ["Item 3", "Item 2"]
    assert body["meta"] == {"count": 2, "limit": 2}


@pytest.mark.asyncio
async def test_featured_products_only(client, make_product):
    await make_product("Plain", minutes=0)
    await make_product("Star", minutes=1, is_featured=True)

    response = await client.get("/v1/products/featured")
    assert [p["name"] for p in response.json()["data"]] == ["Star"]


# TEST 3: Detail

@pytest.mark.asyncio
async def test_product_detail_includes_principal(client, make_product, principal):
    product = await make_product("Exam Gloves", principal_id=principal.id, features=["Latex free"])

    response = await client.get(f"/v1/products/{product.id}")
    assert response.status_code == 200
    data = response.json()["data"]
    assert data["principal"]["name"] == "Medline"
    assert data["features"] == ["Latex free"]


@pytest.mark.asyncio
async def test_missing_product_is_404(client):
    response = await client.get("/v1/products/31337")
    assert response.status_code == 404
    assert response.json()["message"] == "Product not found"


# TEST 4: Admin CRUD

@pytest.mark.asyncio
async def test_admin_creates_product(client, admin_headers, principal, storage):
    response = await client.post(
        "/v1/admin/products",
        data={
            "name": "Pulse Oximeter",
            "product_type": "medical_equipment",
            "description": "Fingertip SpO2 monitor",
            "features": ["OLED display", "Auto power off"],
            "is_featured": "true",
            "principal_id": str(principal.id),
        },
        files=[("images", ("oximeter.png", PNG, "image/png"))],
        headers=admin_headers,
    )
    assert response.status_code == 201
    data = response.json()["data"]
    assert data["features"] == ["OLED display", "Auto power off"]
    assert data["is_featured"] is True
    assert data["principal_id"] == principal.id
    assert storage.exists(data["images"][0])


@pytest.mark.asyncio
async def test_unknown_principal_is_rejected(client, admin_headers):
    response = await client.post(
        "/v1/admin/products",
        data={"name": "Orphan", "product_type": "medical_supplies", "principal_id": "999"},
        headers=admin_headers,
    )
    assert response.status_code == 422
    assert response.json()["errors"]["principal_id"] == ["The selected principal is invalid."]


@pytest.mark.asyncio
async def test_new_product_is_announced_to_active_subscribers(client, admin_headers, db_session, mailer):
    db_session.add_all([
        NewsletterSubscription(first_name="Ana", last_name="Cruz", email="ana@mhrhci.ph"),
        NewsletterSubscription(
            first_name="Ben", last_name="Reyes", email="ben@mhrhci.ph",
            unsubscribed_at=datetime.now(timezone.utc),
        ),
    ])
    await db_session.commit()

    response = await client.post(
        "/v1/admin/products",
        data={"name": "Nebulizer", "product_type": "medical_equipment"},
        headers=admin_headers,
    )
    assert response.status_code == 201
    assert [message["to"] for message in mailer.sent] == ["ana@mhrhci.ph"]
    assert mailer.sent[0]["subject"] == "New Product: Nebulizer"
    assert "/v1/newsletter/unsubscribe?token=" in mailer.sent[0]["body"]


@pytest.mark.asyncio
async def test_mail_failure_does_not_fail_creation(client, admin_headers, db_session, mailer):
    mailer.fail = True
    db_session.add(NewsletterSubscription(first_name="Ana", last_name="Cruz", email="ana@mhrhci.ph"))
    await db_session.commit()

    response = await client.post(
        "/v1/admin/products",
        data={"name": "Thermometer", "product_type": "medical_supplies"},
        headers=admin_headers,
    )
    assert response.status_code == 201


@pytest.mark.asyncio
async def test_staff_cannot_modify_products(client, staff_headers, make_product):
    product = await make_product("Locked")

    response = await client.put(
        f"/v1/admin/products/{product.id}",
        data={"name": "Changed", "product_type": "medical_supplies"},
        headers=staff_headers,
    )
    assert response.status_code == 403

    response = await client.delete(f"/v1/admin/products/{product.id}", headers=staff_headers)
    assert response.status_code == 403


@pytest.mark.asyncio
async def test_update_refreshes_cached_lists(client, admin_headers, make_product):
    product = await make_product("Old Name")
    first = await client.get("/v1/products")
    assert first.json()["data"][0]["name"] == "Old Name"

    response = await client.put(
        f"/v1/admin/products/{product.id}",
        data={"name": "New Name", "product_type": "medical_supplies"},
        headers=admin_headers,
    )
    assert response.status_code == 200

    second = await client.get("/v1/products")
    assert second.json()["data"][0]["name"] == "New Name"


@pytest.mark.asyncio
async def test_delete_product(client, admin_headers, make_product, storage):
    created = await client.post(
        "/v1/admin/products",
        data={"name": "Disposable", "product_type": "medical_supplies"},
        files=[("images", ("d.png", PNG, "image/png"))],
        headers=admin_headers,
    )
    product = created.json()["data"]

    response = await client.delete(f"/v1/admin/products/{product['id']}", headers=admin_headers)
    assert response.status_code == 200
    assert not storage.exists(product["images"][0])
    assert (await client.get(f"/v1/products/{product['id']}")).status_code == 404


def cached_product_lists():
    return {key for key in cache_store.keys() if key.startswith("products_api_")}


@pytest.mark.asyncio
async def test_create_and_delete_evict_cached_lists(client, admin_headers):
    await client.get("/v1/products")
    assert cached_product_lists()

    created = await client.post(
        "/v1/admin/products",
        data={"name": "Face Shield", "product_type": "medical_supplies"},
        headers=admin_headers,
    )
    assert created.status_code == 201
    assert not cached_product_lists()

    listed = await client.get("/v1/products")
    assert [p["name"] for p in listed.json()["data"]] == ["Face Shield"]
    assert cached_product_lists()

    product_id = created.json()["data"]["id"]
    response = await client.delete(f"/v1/admin/products/{product_id}", headers=admin_headers)
    assert response.status_code == 200
    assert not cached_product_lists()
    assert (await client.get("/v1/products")).json()["data"] == []


# TEST 5: Tag invalidation

@pytest.mark.asyncio
async def test_principal_delete_refreshes_product_lists_with_tags(
    client, admin_headers, make_product, principal, mocker
):
    mocker.patch.object(cache_invalidator, "strategy", TagInvalidationStrategy())
    await make_product("Exam Gloves", principal_id=principal.id)

    first = await client.get("/v1/products")
    assert first.json()["data"][0]["principal_id"] == principal.id

    response = await client.delete(f"/v1/admin/principals/{principal.id}", headers=admin_headers)
    assert response.status_code == 200

    second = await client.get("/v1/products")
    assert second.json()["data"][0]["principal_id"] is None
