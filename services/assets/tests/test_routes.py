import re

import pytest

from shared.core.events import ASSET_CREATED, ASSET_DELETED, ASSET_TRANSFERRED, ASSET_UPDATED, SPLIT_DISTRIBUTION


def create(client, **overrides):
    body = {
        "customId": "LAP-001",
        "name": "MacBook Pro",
        "type": "Laptop",
        "location": "Main Building",
        "department": "Engineering",
        "quantity": 10,
        "value": 1500,
        "specifications": {"ram": "16GB"},
    }
    body.update(overrides)
    return client.post("/assets/", json=body)


def test_create_asset_normalizes_type(client, bus):
    resp = create(client)

    assert resp.status_code == 201
    data = resp.json()
    assert data["customId"] == "LAP-001"
    assert data["type"] == "laptop"
    assert data["status"] == "active"
    assert data["assignedUser"] is None
    assert [h["event"] for h in data["history"]] == ["Created"]
    assert bus.topics() == [ASSET_CREATED]
    assert bus.published[0][1]["quantity"] == 10


def test_create_rejects_unknown_type_and_zero_quantity(client):
    assert create(client, type="spaceship").status_code == 422
    assert create(client, quantity=0).status_code == 422


def test_duplicate_custom_id_conflicts(client):
    create(client)

    resp = create(client)

    assert resp.status_code == 409
    assert resp.json()["code"] == "ASSET_CONFLICT"


def test_list_and_get(client):
    create(client)
    create(client, customId="MON-001", type="monitor", quantity=2)

    assert {a["customId"] for a in client.get("/assets/").json()} == {"LAP-001", "MON-001"}
    assert client.get("/assets/MON-001").json()["quantity"] == 2


def test_split_transfer_returns_original_and_new_batch(client, bus):
    create(client)

    resp = client.patch("/assets/LAP-001/transfer", json={
        "destinationType": "building", "destination": "K Building", "quantityToMove": 4,
    })

    assert resp.status_code == 200
    data = resp.json()
    assert data["original"]["quantity"] == 6
    assert data["original"]["location"] == "Main Building"
    assert re.match(r"^LAP-001-SPLIT-\d{4}$", data["newBatch"]["customId"])
    assert data["newBatch"]["quantity"] == 4
    assert data["newBatch"]["location"] == "K Building"
    assert bus.published[-1][0] == ASSET_TRANSFERRED
    assert bus.published[-1][1]["type"] == SPLIT_DISTRIBUTION


def test_full_transfer_returns_the_asset(client):
    create(client, quantity=2)

    resp = client.patch("/assets/LAP-001/transfer", json={"destType": "user", "destination": "alice"})

    assert resp.status_code == 200
    data = resp.json()
    assert data["customId"] == "LAP-001"
    assert data["assignedUser"] == "alice"
    assert data["status"] == "assigned"
    assert data["history"][-1]["event"] == "Transfer"


def test_transfer_by_body(client):
    create(client)

    resp = client.post("/assets/transfer", json={
        "customId": "LAP-001", "destinationType": "department", "destination": "Business", "quantityToMove": "3",
    })

    assert resp.status_code == 200
    assert resp.json()["newBatch"]["department"] == "Business"


def test_transfer_error_mapping(client):
    create(client, quantity=3)

    missing = client.patch("/assets/NOPE/transfer", json={"destinationType": "building", "destination": "K Building"})
    too_many = client.patch("/assets/LAP-001/transfer", json={
        "destinationType": "building", "destination": "K Building", "quantityToMove": 9,
    })
    bad_place = client.patch("/assets/LAP-001/transfer", json={"destinationType": "building", "destination": "Mars"})
    bad_type = client.patch("/assets/LAP-001/transfer", json={"destinationType": "planet", "destination": "Mars"})

    assert missing.status_code == 404
    assert missing.json()["code"] == "ASSET_NOT_FOUND"
    assert too_many.status_code == 400
    assert too_many.json()["code"] == "INVALID_QUANTITY"
    assert bad_place.status_code == 400
    assert bad_place.json()["code"] == "INVALID_DESTINATION"
    assert bad_type.status_code == 422
    assert client.get("/assets/LAP-001").json()["quantity"] == 3


def test_delete_publishes_event(client, bus):
    create(client)

    resp = client.delete("/assets/LAP-001")

    assert resp.status_code == 204
    assert client.get("/assets/LAP-001").status_code == 404
    assert bus.published[-1][0] == ASSET_DELETED
    assert bus.published[-1][1]["customId"] == "LAP-001"


def test_config_lists_vocabularies(client):
    data = client.get("/config").json()

    assert "K Building" in data["buildings"]
    assert "Unassigned" in data["departments"]
    assert {"value": "laptop", "label": "Laptop", "category": "IT & Computing"} in data["assetTypes"]


def test_liveness(client):
    assert client.get("/health/live").json() == {"status": "alive"}


def test_status_update_records_and_publishes(client, bus):
    create(client)

    resp = client.patch("/assets/LAP-001/status", json={"status": "Assigned", "assignedUser": "alice"})

    assert resp.status_code == 200
    data = resp.json()
    assert data["status"] == "assigned"
    assert data["assignedUser"] == "alice"
    assert data["history"][-1]["event"] == "AssetAssigned"
    topic, payload = bus.published[-1]
    assert topic == ASSET_UPDATED
    assert payload["fields"] == ["status", "assignedUser"]


@pytest.mark.parametrize("status,event", [
    ("repair", "AssetFaultReported"),
    ("maintenance", "StatusChange"),
    ("retired", "StatusChange"),
])
def test_status_update_history_event(client, status, event):
    create(client)

    data = client.patch("/assets/LAP-001/status", json={"status": status}).json()

    assert data["status"] == status
    assert data["history"][-1]["event"] == event


def test_status_update_validation(client):
    create(client)

    assert client.patch("/assets/LAP-001/status", json={"status": "assigned"}).status_code == 422
    assert client.patch("/assets/LAP-001/status", json={"status": "stolen"}).status_code == 422
    assert client.patch("/assets/NOPE/status", json={"status": "repair"}).status_code == 404


def test_details_update_changes_descriptive_fields_only(client, bus):
    create(client)

    resp = client.patch("/assets/LAP-001/details", json={
        "specifications": {"ram": "32GB"}, "department": "business", "name": "MacBook Pro",
    })

    assert resp.status_code == 200
    data = resp.json()
    assert data["specifications"] == {"ram": "32GB"}
    assert data["department"] == "Business"
    assert data["quantity"] == 10
    assert data["history"][-1]["event"] == "InfoUpdate"
    assert bus.published[-1][0] == ASSET_UPDATED
    assert bus.published[-1][1]["fields"] == ["department", "specifications"]


def test_details_update_rejects_quantity_and_ignores_no_ops(client, bus):
    create(client)

    assert client.patch("/assets/LAP-001/details", json={"quantity": 50}).status_code == 422

    published = len(bus.published)
    resp = client.patch("/assets/LAP-001/details", json={"name": "MacBook Pro"})

    assert resp.status_code == 200
    assert [h["event"] for h in resp.json()["history"]] == ["Created"]
    assert len(bus.published) == published
