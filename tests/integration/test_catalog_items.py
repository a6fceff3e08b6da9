import pytest
from decimal import Decimal
from fastapi import status
from sqlalchemy.exc import SQLAlchemyError
from app.core.exceptions import PersistenceError
from app.models.shared.enums import ItemType
from app.schemas.inventory.pharmacy_item import PharmacyItemCreate
from app.services.inventory.catalog_service import CatalogService

PHARMACY_URL = "/api/v1/inventory/pharmacy-item/"
OPTICAL_URL = "/api/v1/inventory/optical-item/"


class TestPharmacyItems:
    async def test_create_and_get(self, client, auth_headers):
        payload = {
            "name": "Moxifloxacin 0.5% Eye Drops",
            "sku": "PH-MOXI-5",
            "category": "Antibiotics",
            "generic_name": "Moxifloxacin",
            "manufacturer": "Cipla",
            "expiry_date": "2027-06-30",
            "prescription_required": True,
            "purchase_price": "95.00",
            "selling_price": "140.00",
            "mrp": "150.00",
            "gst_percentage": "12.00",
            "reorder_level": 10,
        }
        response = await client.post(PHARMACY_URL, json=payload, headers=auth_headers)
        assert response.status_code == status.HTTP_201_CREATED

        created = response.json()
        assert created["stock_quantity"] == 0
        assert created["prescription_required"] is True
        assert created["created_by"] == "user-1"
        assert created["is_low_stock"] is True

        response = await client.get(f"{PHARMACY_URL}{created['id']}", headers=auth_headers)
        assert response.status_code == status.HTTP_200_OK
        assert response.json()["sku"] == "PH-MOXI-5"
        assert Decimal(str(response.json()["selling_price"])) == Decimal("140.00")

    async def test_opening_stock_is_written_to_ledger(self, client, auth_headers, pharmacy_item_factory):
        item = await pharmacy_item_factory(stock_quantity=40)
        assert item["stock_quantity"] == 40

        history = (await client.get(
            f"/api/v1/inventory/stock-movement/history/pharmacy/{item['id']}", headers=auth_headers
        )).json()
        assert len(history) == 1
        assert history[0]["movement_type"] == "adjustment"
        assert history[0]["quantity"] == 40
        assert history[0]["previous_stock"] == 0
        assert history[0]["new_stock"] == 40

    async def test_duplicate_sku_rejected(self, client, auth_headers, pharmacy_item_factory):
        await pharmacy_item_factory(sku="PH-DUP")

        payload = {"name": "Other", "sku": "PH-DUP", "category": "Misc"}
        response = await client.post(PHARMACY_URL, json=payload, headers=auth_headers)
        assert response.status_code == status.HTTP_400_BAD_REQUEST

    async def test_selling_price_below_purchase_rejected(self, client, auth_headers):
        payload = {
            "name": "Loss Leader",
            "sku": "PH-LOSS",
            "category": "Misc",
            "purchase_price": "50.00",
            "selling_price": "40.00",
        }
        response = await client.post(PHARMACY_URL, json=payload, headers=auth_headers)
        assert response.status_code == status.HTTP_422_UNPROCESSABLE_ENTITY

    async def test_negative_opening_stock_rejected(self, client, auth_headers):
        payload = {"name": "Bad", "sku": "PH-BAD", "category": "Misc", "stock_quantity": -1}
        response = await client.post(PHARMACY_URL, json=payload, headers=auth_headers)
        assert response.status_code == status.HTTP_422_UNPROCESSABLE_ENTITY

    async def test_update(self, client, auth_headers, pharmacy_item_factory):
        item = await pharmacy_item_factory(stock_quantity=6)

        response = await client.put(
            f"{PHARMACY_URL}{item['id']}",
            json={"name": "Renamed Drops", "reorder_level": 20},
            headers=auth_headers,
        )
        assert response.status_code == status.HTTP_200_OK

        data = response.json()
        assert data["name"] == "Renamed Drops"
        assert data["reorder_level"] == 20
        assert data["stock_quantity"] == 6
        assert data["is_low_stock"] is True

    async def test_update_cannot_touch_stock(self, client, auth_headers, pharmacy_item_factory):
        item = await pharmacy_item_factory(stock_quantity=6)

        response = await client.put(f"{PHARMACY_URL}{item['id']}", json={"stock_quantity": 100}, headers=auth_headers)
        assert response.status_code == status.HTTP_422_UNPROCESSABLE_ENTITY

        response = await client.get(f"{PHARMACY_URL}{item['id']}", headers=auth_headers)
        assert response.json()["stock_quantity"] == 6

    async def test_update_price_rules(self, client, auth_headers, pharmacy_item_factory):
        item = await pharmacy_item_factory(purchase_price="80.00", selling_price="120.00")

        response = await client.put(f"{PHARMACY_URL}{item['id']}", json={"selling_price": "70.00"}, headers=auth_headers)
        assert response.status_code == status.HTTP_400_BAD_REQUEST

        response = await client.put(f"{PHARMACY_URL}{item['id']}", json={"name": None}, headers=auth_headers)
        assert response.status_code == status.HTTP_400_BAD_REQUEST

    async def test_update_cannot_clear_prescription_flag(self, client, auth_headers, pharmacy_item_factory):
        item = await pharmacy_item_factory(prescription_required=True)

        response = await client.put(
            f"{PHARMACY_URL}{item['id']}", json={"prescription_required": None}, headers=auth_headers
        )
        assert response.status_code == status.HTTP_400_BAD_REQUEST
        assert "prescription_required" in response.json()["detail"]

        response = await client.get(f"{PHARMACY_URL}{item['id']}", headers=auth_headers)
        assert response.json()["prescription_required"] is True

    async def test_update_sku_conflict(self, client, auth_headers, pharmacy_item_factory):
        await pharmacy_item_factory(sku="PH-TAKEN")
        item = await pharmacy_item_factory(sku="PH-FREE")

        response = await client.put(f"{PHARMACY_URL}{item['id']}", json={"sku": "PH-TAKEN"}, headers=auth_headers)
        assert response.status_code == status.HTTP_400_BAD_REQUEST

    async def test_delete_is_soft(self, client, auth_headers, pharmacy_item_factory):
        item = await pharmacy_item_factory()

        response = await client.delete(f"{PHARMACY_URL}{item['id']}", headers=auth_headers)
        assert response.status_code == status.HTTP_200_OK

        response = await client.get(f"{PHARMACY_URL}{item['id']}", headers=auth_headers)
        assert response.status_code == status.HTTP_404_NOT_FOUND

        response = await client.delete(f"{PHARMACY_URL}{item['id']}", headers=auth_headers)
        assert response.status_code == status.HTTP_404_NOT_FOUND

        listing = (await client.get(PHARMACY_URL, headers=auth_headers)).json()
        assert listing["count"] == 0

    async def test_missing_item(self, client, auth_headers):
        response = await client.get(f"{PHARMACY_URL}12345", headers=auth_headers)
        assert response.status_code == status.HTTP_404_NOT_FOUND

        response = await client.put(f"{PHARMACY_URL}12345", json={"name": "x"}, headers=auth_headers)
        assert response.status_code == status.HTTP_404_NOT_FOUND


class TestCatalogListing:
    async def test_pagination_and_sorting(self, client, auth_headers, pharmacy_item_factory):
        for name in ("Cyclopentolate", "Atropine", "Brimonidine"):
            await pharmacy_item_factory(name=name)

        response = await client.get(
            PHARMACY_URL,
            params={"page_index": 1, "page_size": 2, "sort_by": "name", "sort_order": "asc"},
            headers=auth_headers,
        )
        data = response.json()
        assert data["count"] == 3
        assert data["page_size"] == 2
        assert [item["name"] for item in data["data"]] == ["Atropine", "Brimonidine"]

        response = await client.get(
            PHARMACY_URL,
            params={"page_index": 2, "page_size": 2, "sort_by": "name", "sort_order": "asc"},
            headers=auth_headers,
        )
        assert [item["name"] for item in response.json()["data"]] == ["Cyclopentolate"]

    async def test_page_size_capped(self, client, auth_headers):
        response = await client.get(PHARMACY_URL, params={"page_size": 500}, headers=auth_headers)
        assert response.status_code == status.HTTP_422_UNPROCESSABLE_ENTITY

    async def test_unknown_sort_column_falls_back(self, client, auth_headers, pharmacy_item_factory):
        await pharmacy_item_factory()

        response = await client.get(PHARMACY_URL, params={"sort_by": "id; drop table"}, headers=auth_headers)
        assert response.status_code == status.HTTP_200_OK
        assert response.json()["count"] == 1

    async def test_search_matches_literally(self, client, auth_headers, pharmacy_item_factory):
        await pharmacy_item_factory(name="Tropicamide 1%", generic_name="Tropicamide")
        await pharmacy_item_factory(name="Tropicamide 10 ml")
        await pharmacy_item_factory(name="Saline", manufacturer="Tropic Labs")

        response = await client.get(PHARMACY_URL, params={"search": "1%"}, headers=auth_headers)
        assert [item["name"] for item in response.json()["data"]] == ["Tropicamide 1%"]

        response = await client.get(PHARMACY_URL, params={"search": "tropic"}, headers=auth_headers)
        assert response.json()["count"] == 3

    async def test_category_and_low_stock_filters(self, client, auth_headers, pharmacy_item_factory):
        await pharmacy_item_factory(category="Lubricants", stock_quantity=2, reorder_level=5)
        await pharmacy_item_factory(category="Lubricants", stock_quantity=50, reorder_level=5)
        await pharmacy_item_factory(category="Steroids", stock_quantity=1, reorder_level=5)

        response = await client.get(PHARMACY_URL, params={"category": "Lubricants"}, headers=auth_headers)
        assert response.json()["count"] == 2

        response = await client.get(
            PHARMACY_URL, params={"category": "Lubricants", "low_stock_only": True}, headers=auth_headers
        )
        data = response.json()
        assert data["count"] == 1
        assert data["data"][0]["stock_quantity"] == 2

    async def test_optical_type_filter(self, client, auth_headers, optical_item_factory):
        await optical_item_factory(optical_type="frames")
        await optical_item_factory(optical_type="lenses", name="Single Vision Lens")

        response = await client.get(OPTICAL_URL, params={"optical_type": "lenses"}, headers=auth_headers)
        data = response.json()
        assert data["count"] == 1
        assert data["data"][0]["name"] == "Single Vision Lens"

        response = await client.get(OPTICAL_URL, params={"optical_type": "telescopes"}, headers=auth_headers)
        assert response.status_code == status.HTTP_422_UNPROCESSABLE_ENTITY


class TestMetrics:
    async def test_pharmacy_metrics(self, client, auth_headers, pharmacy_item_factory):
        await pharmacy_item_factory(stock_quantity=10, reorder_level=5, purchase_price="20.00", selling_price="30.00")
        await pharmacy_item_factory(stock_quantity=3, reorder_level=5, purchase_price="40.00", selling_price="60.00")
        low = await pharmacy_item_factory(stock_quantity=2, reorder_level=5, purchase_price="60.00", selling_price="90.00")
        await client.post(
            "/api/v1/inventory/stock-movement/",
            json={"item_type": "pharmacy", "item_id": low["id"], "movement_type": "sale", "quantity": 4},
            headers=auth_headers,
        )

        response = await client.get(f"{PHARMACY_URL}metrics", headers=auth_headers)
        assert response.status_code == status.HTTP_200_OK

        metrics = response.json()
        assert metrics["item_type"] == "pharmacy"
        assert metrics["total_items"] == 3
        assert metrics["low_stock_count"] == 2
        assert metrics["out_of_stock_count"] == 1
        assert metrics["items_above_reorder"] == 1
        # 10 * 20 + 3 * 40; negative stock adds nothing
        assert metrics["total_inventory_value"] == pytest.approx(320.0)
        assert metrics["average_purchase_price"] == pytest.approx(40.0)

    async def test_empty_optical_metrics(self, client, auth_headers):
        metrics = (await client.get(f"{OPTICAL_URL}metrics", headers=auth_headers)).json()
        assert metrics["item_type"] == "optical"
        assert metrics["total_items"] == 0
        assert metrics["total_inventory_value"] == 0


class TestCatalogService:
    async def test_delete_commit_failure_rolls_back(self, db_session, monkeypatch):
        service = CatalogService(db_session, ItemType.PHARMACY)
        item = await service.create_item(
            PharmacyItemCreate(name="Carboxymethylcellulose", sku="PH-CMC", category="Lubricants"), "user-1"
        )

        async def failing_commit():
            raise SQLAlchemyError("database is locked")

        monkeypatch.setattr(db_session, "commit", failing_commit)

        with pytest.raises(PersistenceError):
            await service.delete_item(item.id, "user-1")

        monkeypatch.undo()
        await db_session.refresh(item)
        assert item.is_deleted is False
