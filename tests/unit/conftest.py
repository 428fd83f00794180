"""Unit test fixtures using moto."""

import asyncio
from collections.abc import Awaitable
from unittest.mock import patch

import pytest
from moto import mock_aws

from way_counter import WayCounterService
from way_counter.schema import TYPE_NUMBER, TYPE_STRING

TEST_TABLE = "test_way_config"
TEST_MAX_VALUE = 5


@pytest.fixture
def aws_credentials(monkeypatch):
    """Mock AWS credentials for moto."""
    monkeypatch.setenv("AWS_ACCESS_KEY_ID", "testing")
    monkeypatch.setenv("AWS_SECRET_ACCESS_KEY", "testing")
    monkeypatch.setenv("AWS_SECURITY_TOKEN", "testing")
    monkeypatch.setenv("AWS_SESSION_TOKEN", "testing")
    monkeypatch.setenv("AWS_DEFAULT_REGION", "us-east-1")
    # Unset AWS_ENDPOINT_URL to ensure moto intercepts requests
    monkeypatch.delenv("AWS_ENDPOINT_URL", raising=False)


def _patch_aiobotocore_response():
    """
    Patch aiobotocore to work with moto's sync responses.

    Moto returns botocore.awsrequest.AWSResponse which has sync content,
    but aiobotocore expects async content. This patch wraps the response
    handling to convert sync content to async.

    See: https://github.com/aio-libs/aiobotocore/discussions/1300
    """
    from aiobotocore import endpoint

    original_convert = endpoint.convert_to_response_dict

    async def patched_convert(http_response, operation_model):
        # If content is not awaitable (moto's sync response), wrap it
        if hasattr(http_response, "_content") and not isinstance(http_response._content, Awaitable):
            # Create a future that returns the content
            fut: asyncio.Future[bytes] = asyncio.Future()
            fut.set_result(http_response.content)
            http_response._content = fut
        return await original_convert(http_response, operation_model)

    return patch.object(endpoint, "convert_to_response_dict", patched_convert)


@pytest.fixture
def mock_dynamodb(aws_credentials):
    """Mock DynamoDB for tests."""
    with mock_aws(), _patch_aiobotocore_response():
        yield


@pytest.fixture
async def make_service(mock_dynamodb):
    """
    Factory for services over freshly created tables.

    Each call creates a table with the given key schema and returns a
    WayCounterService bound to it. All services are closed on teardown.
    """
    services: list[WayCounterService] = []

    async def _make(
        partition_key: tuple[str, str] = ("wayId", TYPE_NUMBER),
        sort_key: tuple[str, str] | None = None,
        table_name: str = TEST_TABLE,
        max_value: int = TEST_MAX_VALUE,
        **kwargs,
    ) -> WayCounterService:
        service = WayCounterService(
            table_name=table_name,
            region="us-east-1",
            max_value=max_value,
            **kwargs,
        )
        await service.repository.create_table(partition_key=partition_key, sort_key=sort_key)
        services.append(service)
        return service

    yield _make

    for service in services:
        await service.close()


@pytest.fixture
async def service(make_service):
    """Service over a table keyed by numeric wayId."""
    return await make_service()


@pytest.fixture
async def string_key_service(make_service):
    """Service over a table keyed by the logical string key."""
    return await make_service(partition_key=("key", TYPE_STRING))


@pytest.fixture
async def composite_service(make_service):
    """Service over a table keyed by string key plus an auxiliary numeric revision."""
    return await make_service(partition_key=("key", TYPE_STRING), sort_key=("rev", TYPE_NUMBER))
