from datetime import timedelta
from fastapi import status

PHARMACY_URL = "/api/v1/inventory/pharmacy-item/"
OPTICAL_URL = "/api/v1/inventory/optical-item/"
MOVEMENTS_URL = "/api/v1/inventory/stock-movement/"


class TestAuthentication:
    async def test_missing_token(self, client):
        response = await client.get(PHARMACY_URL)
        assert response.status_code in (status.HTTP_401_UNAUTHORIZED, status.HTTP_403_FORBIDDEN)

    async def test_invalid_token(self, client):
        response = await client.get(PHARMACY_URL, headers={"Authorization": "Bearer not-a-jwt"})
        assert response.status_code == status.HTTP_401_UNAUTHORIZED

    async def test_expired_token(self, client, make_headers):
        headers = make_headers(("system", "admin"), expires_delta=timedelta(minutes=-5))
        response = await client.get(PHARMACY_URL, headers=headers)
        assert response.status_code == status.HTTP_401_UNAUTHORIZED

    async def test_health_is_public(self, client):
        response = await client.get("/health")
        assert response.status_code == status.HTTP_200_OK
        assert response.json()["status"] == "healthy"
        assert "X-Process-Time" in response.headers


class TestPermissions:
    async def test_view_permission_does_not_grant_create(self, client, make_headers):
        headers = make_headers(("pharmacy", "view"))

        assert (await client.get(PHARMACY_URL, headers=headers)).status_code == status.HTTP_200_OK

        response = await client.post(
            PHARMACY_URL, json={"name": "Drops", "sku": "PH-X", "category": "Misc"}, headers=headers
        )
        assert response.status_code == status.HTTP_403_FORBIDDEN

    async def test_permissions_are_per_catalog(self, client, make_headers):
        headers = make_headers(("optical_plan", "view"))

        assert (await client.get(OPTICAL_URL, headers=headers)).status_code == status.HTTP_200_OK
        assert (await client.get(PHARMACY_URL, headers=headers)).status_code == status.HTTP_403_FORBIDDEN

    async def test_resource_admin_grants_all_actions(self, client, make_headers):
        headers = make_headers(("pharmacy", "admin"))

        response = await client.post(
            PHARMACY_URL, json={"name": "Drops", "sku": "PH-ADM", "category": "Misc"}, headers=headers
        )
        assert response.status_code == status.HTTP_201_CREATED

        response = await client.delete(f"{PHARMACY_URL}{response.json()['id']}", headers=headers)
        assert response.status_code == status.HTTP_200_OK

    async def test_movement_requires_create_on_item_catalog(self, client, make_headers, pharmacy_item_factory):
        item = await pharmacy_item_factory()
        payload = {"item_type": "pharmacy", "item_id": item["id"], "movement_type": "purchase", "quantity": 5}

        optical_only = make_headers(("optical_plan", "create"))
        response = await client.post(MOVEMENTS_URL, json=payload, headers=optical_only)
        assert response.status_code == status.HTTP_403_FORBIDDEN

        pharmacy_clerk = make_headers(("pharmacy", "create"), user_id="clerk-7")
        response = await client.post(MOVEMENTS_URL, json=payload, headers=pharmacy_clerk)
        assert response.status_code == status.HTTP_201_CREATED
        assert response.json()["movement"]["user_id"] == "clerk-7"

    async def test_movement_reads_follow_item_catalog(self, client, make_headers, pharmacy_item_factory):
        item = await pharmacy_item_factory(stock_quantity=2)
        history_url = f"{MOVEMENTS_URL}history/pharmacy/{item['id']}"

        optical_viewer = make_headers(("optical_plan", "view"))
        assert (await client.get(history_url, headers=optical_viewer)).status_code == status.HTTP_403_FORBIDDEN
        assert (await client.get(
            MOVEMENTS_URL, params={"item_type": "pharmacy"}, headers=optical_viewer
        )).status_code == status.HTTP_403_FORBIDDEN

        no_inventory = make_headers(("reports", "view"))
        assert (await client.get(MOVEMENTS_URL, headers=no_inventory)).status_code == status.HTTP_403_FORBIDDEN

        pharmacy_viewer = make_headers(("pharmacy", "view"))
        assert (await client.get(history_url, headers=pharmacy_viewer)).status_code == status.HTTP_200_OK

    async def test_reversal_requires_edit(self, client, make_headers, auth_headers, pharmacy_item_factory):
        item = await pharmacy_item_factory()
        movement = (await client.post(
            MOVEMENTS_URL,
            json={"item_type": "pharmacy", "item_id": item["id"], "movement_type": "purchase", "quantity": 3},
            headers=auth_headers,
        )).json()["movement"]

        creator = make_headers(("pharmacy", "create"))
        response = await client.post(f"{MOVEMENTS_URL}{movement['id']}/reverse", json={}, headers=creator)
        assert response.status_code == status.HTTP_403_FORBIDDEN

        editor = make_headers(("pharmacy", "edit"))
        response = await client.post(f"{MOVEMENTS_URL}{movement['id']}/reverse", json={}, headers=editor)
        assert response.status_code == status.HTTP_201_CREATED
