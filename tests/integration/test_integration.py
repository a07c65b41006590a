"""
Integration Test Suite for the asset platform
Runs against a live deployment: asset service, history API and worker,
Redis and PostgreSQL. Skipped unless INTEGRATION_BASE_URL is set.
"""

import os
import time
import uuid

import httpx
import pytest

BASE_URL = os.getenv("INTEGRATION_BASE_URL")
HISTORY_BASE_URL = os.getenv("INTEGRATION_HISTORY_URL", BASE_URL)
HEALTH_CHECK_RETRIES = 30
HEALTH_CHECK_DELAY = 2
LEDGER_WAIT_SECONDS = 10

pytestmark = pytest.mark.skipif(not BASE_URL, reason="INTEGRATION_BASE_URL not set")


class TestPlatformIntegration:
    """End-to-end checks across the asset service and the history ledger"""

    @classmethod
    def setup_class(cls):
        cls.client = httpx.Client(base_url=BASE_URL, timeout=30.0)
        cls.history = httpx.Client(base_url=HISTORY_BASE_URL, timeout=30.0)
        cls.wait_for_services()

    @classmethod
    def teardown_class(cls):
        cls.client.close()
        cls.history.close()

    @classmethod
    def wait_for_services(cls):
        for attempt in range(HEALTH_CHECK_RETRIES):
            try:
                response = cls.client.get("/health/live")
                if response.status_code == 200:
                    return
            except httpx.HTTPError as e:
                print(f"Attempt {attempt + 1}/{HEALTH_CHECK_RETRIES}: {e}")
            time.sleep(HEALTH_CHECK_DELAY)

        raise RuntimeError("Services failed to start within timeout period")

    def create_asset(self, quantity=10):
        custom_id = f"IT-{uuid.uuid4().hex[:8].upper()}"
        response = self.client.post("/assets/", json={
            "customId": custom_id,
            "name": "Integration Laptop",
            "type": "laptop",
            "location": "Main Building",
            "quantity": quantity,
        })
        assert response.status_code == 201
        return custom_id

    def wait_for_ledger(self, custom_id, action):
        """The ledger is eventually consistent; poll until the row shows up."""
        deadline = time.monotonic() + LEDGER_WAIT_SECONDS
        while time.monotonic() < deadline:
            rows = self.history.get(f"/history/{custom_id}").json()
            if any(row["action"] == action for row in rows):
                return rows
            time.sleep(0.5)
        pytest.fail(f"{action} for {custom_id} never reached the ledger")

    def test_health_endpoints(self):
        for endpoint in ["/health", "/health/live", "/health/ready"]:
            response = self.client.get(endpoint)
            assert response.status_code in [200, 503]
            assert "status" in response.json()

    def test_config(self):
        data = self.client.get("/config").json()
        assert data["buildings"]
        assert data["assetTypes"]

    def test_split_reaches_the_ledger(self):
        custom_id = self.create_asset(quantity=10)

        response = self.client.patch(f"/assets/{custom_id}/transfer", json={
            "destinationType": "building", "destination": "K Building", "quantityToMove": 4,
        })
        assert response.status_code == 200
        new_batch = response.json()["newBatch"]["customId"]
        assert response.json()["original"]["quantity"] == 6

        rows = self.wait_for_ledger(custom_id, "DISTRIBUTED")
        assert any(new_batch in row["details"] for row in rows)

    def test_low_stock_reaches_the_ledger(self):
        custom_id = self.create_asset(quantity=8)

        response = self.client.patch(f"/assets/{custom_id}/transfer", json={
            "destinationType": "department", "destination": "Business", "quantityToMove": 5,
        })
        assert response.status_code == 200

        self.wait_for_ledger(custom_id, "LOW_STOCK")

    def test_delete_keeps_history(self):
        custom_id = self.create_asset(quantity=1)
        self.wait_for_ledger(custom_id, "CREATED")

        assert self.client.delete(f"/assets/{custom_id}").status_code == 204
        assert self.client.get(f"/assets/{custom_id}").status_code == 404

        rows = self.wait_for_ledger(custom_id, "DELETED")
        assert {row["action"] for row in rows} >= {"CREATED", "DELETED"}
