"""Tests for the FastAPI application."""

import json

import httpx
import pytest

from tests.fixtures.dynamodb import counter_item, get_raw_item, put_raw_item
from tests.unit.conftest import TEST_MAX_VALUE, TEST_TABLE
from way_counter import WayCounterService
from way_counter.api import create_app
from way_counter.config import Settings
from way_counter.locations import LocationStore


@pytest.fixture
def settings(tmp_path):
    return Settings(
        table_name=TEST_TABLE,
        max_value=TEST_MAX_VALUE,
        static_dir=str(tmp_path / "public"),
        locations_file=str(tmp_path / "locations.json"),
    )


@pytest.fixture
def app(settings, service):
    return create_app(settings, service=service)


@pytest.fixture
async def client(app):
    transport = httpx.ASGITransport(app=app)
    async with httpx.AsyncClient(transport=transport, base_url="http://test") as client:
        yield client


class TestHealth:
    async def test_health(self, client):
        response = await client.get("/health")

        assert response.status_code == 200
        assert response.text == "OK"


class TestConfig:
    async def test_lists_counters(self, client, service):
        await put_raw_item(service, counter_item(1, value=2, label="Main St"))
        await put_raw_item(service, {"wayId": {"N": "2"}})

        response = await client.get("/config")

        assert response.status_code == 200
        assert sorted(response.json(), key=lambda c: c["id"]) == [
            {"key": "way-1", "id": 1, "label": "Main St", "value": 2},
            {"key": None, "id": 2, "label": "", "value": 0},
        ]

    async def test_store_failure(self, settings, mock_dynamodb):
        service = WayCounterService(table_name="no_such_table", region="us-east-1")
        app = create_app(settings, service=service)
        transport = httpx.ASGITransport(app=app)

        async with httpx.AsyncClient(transport=transport, base_url="http://test") as client:
            response = await client.get("/config")
        await service.close()

        assert response.status_code == 500
        assert response.json()["error"] == "store_failure"
        assert "Failed to load config" in response.json()["message"]


class TestValue:
    async def test_increment(self, client, service):
        await put_raw_item(service, counter_item(7, value=1))

        response = await client.post("/value", json={"key": "way-7", "wayId": 7, "delta": 1})

        assert response.status_code == 200
        assert response.json() == {"key": "way-7", "id": 7, "value": 2}

    async def test_id_alias_and_string_delta(self, client, service):
        await put_raw_item(service, counter_item(7, value=1))

        response = await client.post("/value", json={"id": "7", "delta": "-1"})

        assert response.status_code == 200
        assert response.json()["value"] == 0

    async def test_ceiling(self, client, service):
        await put_raw_item(service, counter_item(7, value=TEST_MAX_VALUE))

        response = await client.post("/value", json={"wayId": 7, "delta": 1})

        assert response.status_code == 400
        body = response.json()
        assert body["error"] == "bound_violation"
        assert body["bound"] == "ceiling"
        assert body["max"] == TEST_MAX_VALUE
        assert body["message"] == f"Value is already at the maximum ({TEST_MAX_VALUE})"

    async def test_floor(self, client, service):
        await put_raw_item(service, counter_item(7, value=0))

        response = await client.post("/value", json={"wayId": 7, "delta": -1})

        assert response.status_code == 400
        assert response.json()["message"] == "Value is already at the minimum (0)"

    @pytest.mark.parametrize("delta", [None, 0, 2, "up"])
    async def test_invalid_delta(self, client, service, delta):
        await put_raw_item(service, counter_item(7, value=1))

        response = await client.post("/value", json={"wayId": 7, "delta": delta})

        assert response.status_code == 400
        assert response.json()["error"] == "invalid_delta"
        item = await get_raw_item(service, {"wayId": {"N": "7"}})
        assert item["value"] == {"N": "1"}

    async def test_oversized_delta(self, client):
        response = await client.post("/value", json={"wayId": 1, "delta": "1" * 5000})

        assert response.status_code == 400
        assert response.json()["error"] == "invalid_delta"

    async def test_oversized_way_id(self, client):
        response = await client.post("/value", json={"wayId": "1" * 5000, "delta": 1})

        assert response.status_code == 400
        assert response.json()["error"] == "key_resolution_failed"

    @pytest.mark.parametrize("body", [[1, 2], "x", 5, None])
    async def test_non_object_body(self, client, body):
        response = await client.post("/value", json=body)

        assert response.status_code == 400
        assert response.json()["error"] == "invalid_delta"

    async def test_missing_identifier(self, client):
        response = await client.post("/value", json={"delta": 1})

        assert response.status_code == 400
        body = response.json()
        assert body["error"] == "key_resolution_failed"
        assert body["accepted"] == ["key (string)", "wayId (number)", "id (number)"]
        assert body["missing"] == ["wayId"]

    async def test_schema_unavailable(self, settings, mock_dynamodb):
        service = WayCounterService(table_name="no_such_table", region="us-east-1")
        app = create_app(settings, service=service)
        transport = httpx.ASGITransport(app=app)

        async with httpx.AsyncClient(transport=transport, base_url="http://test") as client:
            response = await client.post("/value", json={"wayId": 1, "delta": 1})
        await service.close()

        assert response.status_code == 500
        assert response.json()["error"] == "schema_unavailable"


class TestLocations:
    async def test_save_list_remove(self, client):
        response = await client.post(
            "/save-location", json={"id": "alice", "latitude": 47.6, "longitude": -122.3}
        )
        assert response.json() == {"status": "ok"}

        response = await client.get("/get-locations")
        [location] = response.json()
        assert location["id"] == "alice"
        assert location["latitude"] == 47.6

        response = await client.post("/remove-location", json={"id": "alice"})
        assert response.json() == {"status": "removed"}
        assert (await client.get("/get-locations")).json() == []

    async def test_save_requires_coordinates(self, client):
        response = await client.post("/save-location", json={"id": "alice"})

        assert response.status_code == 422

    async def test_injected_store(self, settings, service, tmp_path):
        store = LocationStore(tmp_path / "other.json")
        store.save(3, 1.0, 2.0)
        app = create_app(settings, service=service, location_store=store)
        transport = httpx.ASGITransport(app=app)

        async with httpx.AsyncClient(transport=transport, base_url="http://test") as client:
            response = await client.get("/get-locations")

        assert [loc["id"] for loc in response.json()] == [3]


class TestStaticFiles:
    async def test_serves_index_alongside_api(self, settings, service, tmp_path):
        public = tmp_path / "public"
        public.mkdir()
        (public / "index.html").write_text("<h1>ways</h1>")
        app = create_app(settings, service=service)
        transport = httpx.ASGITransport(app=app)

        async with httpx.AsyncClient(transport=transport, base_url="http://test") as client:
            index = await client.get("/")
            health = await client.get("/health")

        assert index.status_code == 200
        assert "<h1>ways</h1>" in index.text
        assert health.text == "OK"

    async def test_no_static_dir(self, client):
        response = await client.get("/")

        assert response.status_code == 404


class TestLifespan:
    async def test_seeds_reference_ways_on_startup(self, settings, service, tmp_path):
        reference = tmp_path / "ways.json"
        reference.write_text(json.dumps([{"wayId": 1, "label": "Main St"}, {"wayId": 2}]))
        app = create_app(
            settings.model_copy(update={"reference_file": str(reference)}), service=service
        )

        async with app.router.lifespan_context(app):
            result = await app.state.seed_task

        assert result.created == 2
        counters = await service.list_counters()
        assert sorted(c.label for c in counters) == ["Main St", "Way 2"]

    async def test_no_reference_file(self, app):
        async with app.router.lifespan_context(app):
            assert app.state.seed_task is None
