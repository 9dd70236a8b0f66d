# Copyright (c) 2025-2026 OptimNow. All Rights Reserved.
# Licensed under the Apache License, Version 2.0.
# See LICENSE file in the project root for full license information.

"""Pytest configuration and shared fixtures."""

import json
from unittest.mock import AsyncMock, MagicMock

import pytest

from asset_inventory.models.inventory import InventorySnapshot
from asset_inventory.models.resource import ResourceRecord
from asset_inventory.utils.retry import RetryExecutor


@pytest.fixture
def anyio_backend():
    """Configure anyio backend for async tests."""
    return "asyncio"


# =============================================================================
# Environment and Configuration Fixtures
# =============================================================================

SETTINGS_ENV_VARS = [
    "AWS_PROFILE",
    "ASSET_INVENTORY_PROFILE",
    "ASSET_INVENTORY_MAX_CONCURRENCY",
    "ASSET_INVENTORY_MAX_RETRIES",
    "ASSET_INVENTORY_BASE_DELAY",
    "ASSET_INVENTORY_MAX_DELAY",
    "AWS_CONNECT_TIMEOUT",
    "AWS_READ_TIMEOUT",
    "LOG_LEVEL",
]


@pytest.fixture
def clean_env(monkeypatch, tmp_path):
    """Remove settings variables and run from an empty directory (no .env)."""
    for key in SETTINGS_ENV_VARS:
        monkeypatch.delenv(key, raising=False)
    monkeypatch.chdir(tmp_path)
    return tmp_path


# =============================================================================
# AWS Config Mocks
# =============================================================================

def config_item(resource_type: str, resource_id: str, region: str = "us-east-1") -> dict:
    """Build a BatchGetResourceConfig base configuration item."""
    return {
        "resourceType": resource_type,
        "resourceId": resource_id,
        "resourceName": f"name-{resource_id}",
        "awsRegion": region,
        "availabilityZone": f"{region}a",
        "accountId": "123456789012",
        "arn": f"arn:aws:test:{region}:123456789012:{resource_id}",
        "configuration": json.dumps({"id": resource_id}),
    }


def build_config_client(
    inventory: dict[str, list[str]],
    region: str = "us-east-1",
    page_size: int = 100,
) -> MagicMock:
    """
    Create a mock ConfigServiceClient serving a fixed inventory.

    Discovery returns one resource type per page; listings are paged by
    page_size; batch lookups return a configuration item for every key.
    """
    client = MagicMock()
    types = list(inventory)

    async def get_counts(next_token=None):
        index = int(next_token) if next_token else 0
        if not types:
            return {"resourceCounts": []}
        response = {
            "resourceCounts": [
                {"resourceType": types[index], "count": len(inventory[types[index]])}
            ]
        }
        if index + 1 < len(types):
            response["nextToken"] = str(index + 1)
        return response

    async def list_resources(resource_type, next_token=None):
        ids = inventory.get(resource_type, [])
        start = int(next_token) if next_token else 0
        page = ids[start:start + page_size]
        response = {
            "resourceIdentifiers": [
                {"resourceType": resource_type, "resourceId": rid, "resourceName": f"name-{rid}"}
                for rid in page
            ]
        }
        if start + page_size < len(ids):
            response["nextToken"] = str(start + page_size)
        return response

    async def batch_get(resource_keys):
        return {
            "baseConfigurationItems": [
                config_item(key["resourceType"], key["resourceId"], region)
                for key in resource_keys
            ],
            "unprocessedResourceKeys": [],
        }

    client.get_discovered_resource_counts = AsyncMock(side_effect=get_counts)
    client.list_discovered_resources = AsyncMock(side_effect=list_resources)
    client.batch_get_resource_config = AsyncMock(side_effect=batch_get)
    return client


@pytest.fixture
def make_config_client():
    """Factory fixture for mock AWS Config clients."""
    return build_config_client


@pytest.fixture
def fast_retry_executor():
    """RetryExecutor with delays small enough for unit tests."""
    return RetryExecutor(max_retries=3, base_delay_seconds=0.001, max_delay_seconds=0.004)


# =============================================================================
# Test Data Fixtures
# =============================================================================

@pytest.fixture
def sample_resources():
    """Provide a small mixed set of resources across two regions."""
    return [
        ResourceRecord(
            resource_type="AWS::EC2::Instance",
            resource_id="i-1",
            resource_name="web-1",
            region="us-east-1",
            account_id="123456789012",
            arn="arn:aws:ec2:us-east-1:123456789012:instance/i-1",
            configuration={"instanceType": "t3.micro"},
        ),
        ResourceRecord(
            resource_type="AWS::EC2::Instance",
            resource_id="i-2",
            region="eu-west-1",
        ),
        ResourceRecord(
            resource_type="AWS::S3::Bucket",
            resource_id="logs-bucket",
            resource_name="logs-bucket",
            region="us-east-1",
            arn="arn:aws:s3:::logs-bucket",
        ),
    ]


@pytest.fixture
def sample_snapshot(sample_resources):
    """Provide a snapshot holding sample_resources."""
    snapshot = InventorySnapshot.new("prod", ["us-east-1", "eu-west-1"])
    for resource in sample_resources:
        snapshot.add_resource(resource)
    return snapshot


# =============================================================================
# Pytest Hooks for Test Reporting
# =============================================================================

def pytest_configure(config):
    """Configure pytest with custom markers and settings."""
    config.addinivalue_line(
        "markers", "unit: marks tests as unit tests"
    )
    config.addinivalue_line(
        "markers", "property: marks tests as property-based tests"
    )


def pytest_collection_modifyitems(config, items):
    """Automatically mark tests based on their location."""
    for item in items:
        if "unit" in str(item.fspath):
            item.add_marker(pytest.mark.unit)
        elif "property" in str(item.fspath):
            item.add_marker(pytest.mark.property)


def pytest_sessionstart(session):
    """Print test session information."""
    print("\n" + "=" * 70)
    print("AWS Asset Inventory - Test Suite")
    print("=" * 70)


def pytest_sessionfinish(session, exitstatus):
    """Print test session summary."""
    print("\n" + "=" * 70)
    if exitstatus == 0:
        print("PASS: All tests passed!")
    else:
        print(f"FAIL: Tests failed with exit status: {exitstatus}")
    print("=" * 70)
