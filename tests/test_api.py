"""HTTP tests for the registry router, backed by in-memory SQLite."""

import json

from fastapi import status

from app.core.exceptions import DecodeError
from app.ledger.sql_store import SQLStateStore

ALICE = {"Id": "Alice"}
BOB = {"Id": "Bob"}
HOUSE1 = {"Id": "1", "Address": "seoul", "OwnerId": "Alice", "Price": "3000", "Timestamp": "2018-01-01T12:34:56Z"}


async def invoke(client, function, *args):
    response = await client.post("/api/v1/invoke", json={"function": function, "args": list(args)})
    assert response.status_code == status.HTTP_200_OK
    return response.json()


async def test_health_check(client):
    response = await client.get("/")
    assert response.status_code == 200
    assert response.json()["status"] == "ok"


async def test_invoke_roundtrip(client):
    body = await invoke(client, "AddOwner", json.dumps(ALICE))
    assert body == {"status": 200, "message": "", "payload": ""}

    body = await invoke(client, "AddHouse", json.dumps(HOUSE1))
    assert body["status"] == 200

    body = await invoke(client, "GetHouse", '"1"')
    assert json.loads(body["payload"]) == HOUSE1


async def test_invoke_failure_is_a_response_not_an_http_error(client):
    body = await invoke(client, "BadMethod")
    assert body == {"status": 500, "message": "Unknown method: BadMethod", "payload": ""}


async def test_failed_invoke_rolls_back(client):
    await invoke(client, "AddOwner", json.dumps(ALICE))
    body = await invoke(client, "AddHouse", json.dumps({**HOUSE1, "OwnerId": "Bob"}))
    assert body["message"] == "Validation of the House failed"

    body = await invoke(client, "ListHouses")
    assert json.loads(body["payload"]) == []


async def test_invoke_transfer_updates_cache(client, redis_mock):
    await invoke(client, "AddOwner", json.dumps(ALICE))
    await invoke(client, "AddOwner", json.dumps(BOB))
    await invoke(client, "AddHouse", json.dumps(HOUSE1))
    redis_mock.set.assert_not_awaited()

    body = await invoke(client, "TransferHouse", '"1"', '"Bob"')
    assert body["status"] == 200

    redis_mock.set.assert_awaited_once()
    args, kwargs = redis_mock.set.await_args
    assert args[0] == "ownership:house:1"
    assert json.loads(args[1])["OwnerId"] == "Bob"
    assert kwargs["ex"] == 3600


async def test_invoke_failed_transfer_skips_cache(client, redis_mock):
    await invoke(client, "AddOwner", json.dumps(ALICE))
    await invoke(client, "AddHouse", json.dumps(HOUSE1))
    body = await invoke(client, "TransferHouse", '"1"', '"Bob"')
    assert body["status"] == 500
    redis_mock.set.assert_not_awaited()


async def test_rest_owner_lifecycle(client):
    response = await client.get("/api/v1/owners")
    assert response.json() == {"status": "success", "owners": []}

    response = await client.post("/api/v1/owners", json=ALICE)
    assert response.status_code == status.HTTP_201_CREATED

    response = await client.post("/api/v1/owners", json=ALICE)
    assert response.status_code == status.HTTP_409_CONFLICT
    assert response.json()["detail"] == "an Owner with Id = Alice already exists"

    response = await client.get("/api/v1/owners")
    assert response.json()["owners"] == [ALICE]


async def test_rest_house_lifecycle(client, redis_mock):
    await client.post("/api/v1/owners", json=ALICE)
    await client.post("/api/v1/owners", json=BOB)

    response = await client.post("/api/v1/houses", json=HOUSE1)
    assert response.status_code == status.HTTP_201_CREATED

    response = await client.get("/api/v1/houses/1")
    assert response.json()["house"] == HOUSE1

    response = await client.put("/api/v1/houses/1", json={**HOUSE1, "Price": "3500"})
    assert response.status_code == status.HTTP_200_OK
    redis_mock.set.assert_awaited_once()

    response = await client.get("/api/v1/houses")
    assert [h["Price"] for h in response.json()["houses"]] == ["3500"]


async def test_rest_errors_map_to_status_codes(client):
    response = await client.get("/api/v1/houses/404")
    assert response.status_code == status.HTTP_404_NOT_FOUND
    assert response.json()["detail"] == "House with Id = 404 was not found"

    response = await client.post("/api/v1/houses", json=HOUSE1)
    assert response.status_code == status.HTTP_400_BAD_REQUEST
    assert response.json()["detail"] == "Validation of the House failed"

    response = await client.put("/api/v1/houses/2", json=HOUSE1)
    assert response.status_code == status.HTTP_400_BAD_REQUEST

    response = await client.post("/api/v1/owners", json={"Id": ""})
    assert response.status_code == status.HTTP_422_UNPROCESSABLE_CONTENT


async def test_rest_transfer(client, redis_mock):
    await client.post("/api/v1/owners", json=ALICE)
    await client.post("/api/v1/owners", json=BOB)
    await client.post("/api/v1/houses", json=HOUSE1)

    response = await client.post("/api/v1/houses/1/transfer", json={"new_owner_id": "Carol"})
    assert response.status_code == status.HTTP_400_BAD_REQUEST

    response = await client.post("/api/v1/houses/1/transfer", json={"new_owner_id": "Bob"})
    assert response.status_code == status.HTTP_200_OK
    assert response.json()["house"] == {**HOUSE1, "OwnerId": "Bob"}

    response = await client.get("/api/v1/owners/Bob/houses")
    assert [h["Id"] for h in response.json()["houses"]] == ["1"]
    response = await client.get("/api/v1/owners/Alice/houses")
    assert response.json()["houses"] == []


async def test_transfer_survives_cache_outage(client, redis_mock):
    redis_mock.set.side_effect = ConnectionError("redis down")
    await client.post("/api/v1/owners", json=ALICE)
    await client.post("/api/v1/owners", json=BOB)
    await client.post("/api/v1/houses", json=HOUSE1)

    response = await client.post("/api/v1/houses/1/transfer", json={"new_owner_id": "Bob"})
    assert response.status_code == status.HTTP_200_OK

    response = await client.get("/api/v1/houses/1")
    assert response.json()["house"]["OwnerId"] == "Bob"


async def test_admin_listing(client):
    await client.post("/api/v1/owners", json=ALICE)
    await client.post("/api/v1/houses", json=HOUSE1)
    response = await client.get("/api/v1/owners/admin-x/houses")
    assert [h["Id"] for h in response.json()["houses"]] == ["1"]


async def test_nanosecond_timestamp_survives_sql_ledger(client, redis_mock):
    house = {**HOUSE1, "Timestamp": "2018-01-01T12:34:56.123456789Z"}
    await invoke(client, "AddOwner", json.dumps(ALICE))
    await invoke(client, "AddOwner", json.dumps(BOB))
    assert (await invoke(client, "AddHouse", json.dumps(house)))["status"] == 200

    body = await invoke(client, "TransferHouse", '"1"', '"Bob"')
    assert body["status"] == 200

    body = await invoke(client, "GetHouse", '"1"')
    assert json.loads(body["payload"]) == {**house, "OwnerId": "Bob"}
    cached = json.loads(redis_mock.set.await_args.args[1])
    assert cached["Timestamp"] == "2018-01-01T12:34:56.123456789Z"

    response = await client.get("/api/v1/houses/1")
    assert response.json()["house"]["Timestamp"] == "2018-01-01T12:34:56.123456789Z"


async def test_unexpected_failure_on_invoke_is_a_failure_response(client, redis_mock, monkeypatch):
    async def disk_full(self, key, value):
        raise RuntimeError("disk full")

    monkeypatch.setattr(SQLStateStore, "put_state", disk_full)
    body = await invoke(client, "AddOwner", json.dumps(ALICE))
    assert body == {"status": 500, "message": "disk full", "payload": ""}
    redis_mock.set.assert_not_awaited()


async def test_unexpected_failure_on_rest_is_a_500(client, monkeypatch):
    async def disk_full(self, key, value):
        raise RuntimeError("disk full")

    monkeypatch.setattr(SQLStateStore, "put_state", disk_full)
    response = await client.post("/api/v1/owners", json=ALICE)
    assert response.status_code == status.HTTP_500_INTERNAL_SERVER_ERROR
    assert response.json()["detail"] == "disk full"

    monkeypatch.undo()
    response = await client.get("/api/v1/owners")
    assert response.json()["owners"] == []


def test_decode_error_maps_to_422():
    assert DecodeError.status_code == 422
