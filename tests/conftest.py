"""Pytest fixtures for way-counter tests."""

import os

import pytest


@pytest.fixture
def dynamodb_local_endpoint():
    """DynamoDB Local endpoint URL from environment."""
    endpoint = os.getenv("AWS_ENDPOINT_URL")
    if not endpoint:
        pytest.skip("AWS_ENDPOINT_URL not set - DynamoDB Local not available")
    return endpoint
