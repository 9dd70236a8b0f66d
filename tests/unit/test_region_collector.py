# Copyright (c) 2025-2026 OptimNow. All Rights Reserved.
# Licensed under the Apache License, Version 2.0.
# See LICENSE file in the project root for full license information.

"""Unit tests for RegionCollector.

Tests single-region collection including:
- Resource type discovery and pagination
- Batching of configuration lookups
- Shallow fallback when configuration lookups fail
- Error wrapping with partial results
- Progress messages
"""

import asyncio
from unittest.mock import AsyncMock

import pytest

from asset_inventory.clients.config_client import AWSAPIError
from asset_inventory.services.region_collector import (
    MAX_BATCH_SIZE,
    ClientUnavailableError,
    RegionCollectionError,
    RegionCollector,
)
from asset_inventory.utils.retry import OperationCancelledError


def _collector(client, retry_executor, **kwargs) -> RegionCollector:
    return RegionCollector(
        region="us-east-1",
        client=client,
        retry_executor=retry_executor,
        **kwargs,
    )


class TestDiscovery:
    """Tests for resource type discovery."""

    @pytest.mark.asyncio
    async def test_empty_region(self, make_config_client, fast_retry_executor):
        client = make_config_client({})

        resources = await _collector(client, fast_retry_executor).collect()

        assert resources == []
        client.list_discovered_resources.assert_not_called()

    @pytest.mark.asyncio
    async def test_follows_discovery_pages(self, make_config_client, fast_retry_executor):
        client = make_config_client({
            "AWS::EC2::Instance": ["i-1"],
            "AWS::S3::Bucket": ["b-1"],
            "AWS::IAM::Role": ["r-1"],
        })

        resources = await _collector(client, fast_retry_executor).collect()

        assert client.get_discovered_resource_counts.await_count == 3
        assert [r.resource_type for r in resources] == [
            "AWS::EC2::Instance",
            "AWS::S3::Bucket",
            "AWS::IAM::Role",
        ]

    @pytest.mark.asyncio
    async def test_entries_without_type_are_skipped(self, fast_retry_executor):
        client = AsyncMock()
        client.get_discovered_resource_counts.return_value = {
            "resourceCounts": [
                {"resourceType": "", "count": 4},
                {"count": 2},
                {"resourceType": "AWS::SNS::Topic", "count": 0},
            ]
        }
        client.list_discovered_resources.return_value = {"resourceIdentifiers": []}

        await _collector(client, fast_retry_executor).collect()

        client.list_discovered_resources.assert_awaited_once_with("AWS::SNS::Topic", None)


class TestDetailResolution:
    """Tests for listing and configuration lookups."""

    @pytest.mark.asyncio
    async def test_detailed_records(self, make_config_client, fast_retry_executor):
        client = make_config_client({"AWS::EC2::Instance": ["i-1", "i-2"]})

        resources = await _collector(client, fast_retry_executor).collect()

        assert [r.resource_id for r in resources] == ["i-1", "i-2"]
        first = resources[0]
        assert first.region == "us-east-1"
        assert first.resource_name == "name-i-1"
        assert first.account_id == "123456789012"
        assert first.arn == "arn:aws:test:us-east-1:123456789012:i-1"
        assert first.availability_zone == "us-east-1a"
        assert first.configuration == {"id": "i-1"}
        assert first.is_shallow is False

    @pytest.mark.asyncio
    async def test_batches_never_exceed_limit(self, make_config_client, fast_retry_executor):
        ids = [f"i-{n}" for n in range(250)]
        client = make_config_client({"AWS::EC2::Instance": ids}, page_size=250)

        resources = await _collector(client, fast_retry_executor).collect()

        batch_sizes = [
            len(call.args[0]) for call in client.batch_get_resource_config.await_args_list
        ]
        assert batch_sizes == [MAX_BATCH_SIZE, MAX_BATCH_SIZE, 50]
        assert [r.resource_id for r in resources] == ids

    @pytest.mark.asyncio
    async def test_follows_listing_pages(self, make_config_client, fast_retry_executor):
        ids = [f"b-{n}" for n in range(7)]
        client = make_config_client({"AWS::S3::Bucket": ids}, page_size=3)

        resources = await _collector(client, fast_retry_executor).collect()

        assert client.list_discovered_resources.await_count == 3
        assert [r.resource_id for r in resources] == ids

    @pytest.mark.asyncio
    async def test_unprocessed_keys_are_dropped(self, fast_retry_executor):
        client = AsyncMock()
        client.get_discovered_resource_counts.return_value = {
            "resourceCounts": [{"resourceType": "AWS::EC2::Volume", "count": 2}]
        }
        client.list_discovered_resources.return_value = {
            "resourceIdentifiers": [{"resourceId": "vol-1"}, {"resourceId": "vol-2"}]
        }
        client.batch_get_resource_config.return_value = {
            "baseConfigurationItems": [
                {"resourceType": "AWS::EC2::Volume", "resourceId": "vol-1", "arn": "arn:vol-1"}
            ],
            "unprocessedResourceKeys": [
                {"resourceType": "AWS::EC2::Volume", "resourceId": "vol-2"}
            ],
        }

        resources = await _collector(client, fast_retry_executor).collect()

        assert [r.resource_id for r in resources] == ["vol-1"]

    @pytest.mark.asyncio
    async def test_non_json_configuration_kept_as_string(self, fast_retry_executor):
        client = AsyncMock()
        client.get_discovered_resource_counts.return_value = {
            "resourceCounts": [{"resourceType": "AWS::Lambda::Function", "count": 1}]
        }
        client.list_discovered_resources.return_value = {
            "resourceIdentifiers": [{"resourceId": "fn"}]
        }
        client.batch_get_resource_config.return_value = {
            "baseConfigurationItems": [
                {"resourceId": "fn", "accountId": "1", "configuration": "not json"}
            ]
        }

        resources = await _collector(client, fast_retry_executor).collect()

        assert resources[0].resource_type == "AWS::Lambda::Function"
        assert resources[0].configuration == "not json"


class TestShallowFallback:
    """Tests for degrading a page to listing data."""

    @pytest.mark.asyncio
    async def test_failed_lookup_yields_shallow_records(self, make_config_client, fast_retry_executor):
        client = make_config_client({"AWS::EC2::Instance": ["i-1", "i-2"]})
        client.batch_get_resource_config.side_effect = AWSAPIError(
            "AWS API error: AccessDeniedException - denied"
        )

        resources = await _collector(client, fast_retry_executor).collect()

        assert [r.resource_id for r in resources] == ["i-1", "i-2"]
        assert all(r.is_shallow for r in resources)
        assert resources[0].resource_name == "name-i-1"
        assert resources[0].resource_type == "AWS::EC2::Instance"
        assert resources[0].region == "us-east-1"

    @pytest.mark.asyncio
    async def test_whole_page_degrades_when_one_batch_fails(
        self, make_config_client, fast_retry_executor
    ):
        ids = [f"i-{n}" for n in range(150)]
        client = make_config_client({"AWS::EC2::Instance": ids}, page_size=150)
        original = client.batch_get_resource_config.side_effect
        calls = {"n": 0}

        async def fail_second_batch(keys):
            calls["n"] += 1
            if calls["n"] == 2:
                raise AWSAPIError("AWS API error: InternalFailure - boom")
            return await original(keys)

        client.batch_get_resource_config.side_effect = fail_second_batch

        resources = await _collector(client, fast_retry_executor).collect()

        assert len(resources) == 150
        assert all(r.is_shallow for r in resources)

    @pytest.mark.asyncio
    async def test_fallback_only_affects_failing_page(self, make_config_client, fast_retry_executor):
        client = make_config_client({"AWS::S3::Bucket": ["a", "b", "c", "d"]}, page_size=2)
        original = client.batch_get_resource_config.side_effect

        async def fail_first_page(keys):
            if keys[0]["resourceId"] == "a":
                raise AWSAPIError("AWS API error: InternalFailure - boom")
            return await original(keys)

        client.batch_get_resource_config.side_effect = fail_first_page

        resources = await _collector(client, fast_retry_executor).collect()

        assert [r.is_shallow for r in resources] == [True, True, False, False]

    @pytest.mark.asyncio
    async def test_throttled_lookup_retried_before_fallback(
        self, make_config_client, fast_retry_executor
    ):
        client = make_config_client({"AWS::EC2::Instance": ["i-1"]})
        client.batch_get_resource_config.side_effect = AWSAPIError(
            "AWS API error: ThrottlingException - Rate exceeded"
        )

        resources = await _collector(client, fast_retry_executor).collect()

        assert client.batch_get_resource_config.await_count == 4
        assert resources[0].is_shallow


class TestFailures:
    """Tests for errors that abort the region."""

    @pytest.mark.asyncio
    async def test_missing_client(self, fast_retry_executor):
        with pytest.raises(RegionCollectionError) as exc_info:
            await _collector(None, fast_retry_executor).collect()

        assert isinstance(exc_info.value.cause, ClientUnavailableError)
        assert exc_info.value.region == "us-east-1"

    @pytest.mark.asyncio
    async def test_discovery_failure(self, make_config_client, fast_retry_executor):
        client = make_config_client({"AWS::EC2::Instance": ["i-1"]})
        error = AWSAPIError("AWS API error: AccessDeniedException - denied")
        client.get_discovered_resource_counts.side_effect = error

        with pytest.raises(RegionCollectionError) as exc_info:
            await _collector(client, fast_retry_executor).collect()

        assert exc_info.value.cause is error
        assert exc_info.value.partial_resources == []
        assert str(exc_info.value).startswith("[us-east-1] ")

    @pytest.mark.asyncio
    async def test_listing_failure_keeps_partial_resources(
        self, make_config_client, fast_retry_executor
    ):
        client = make_config_client({
            "AWS::EC2::Instance": ["i-1", "i-2"],
            "AWS::S3::Bucket": ["b-1"],
        })
        original = client.list_discovered_resources.side_effect

        async def fail_buckets(resource_type, next_token=None):
            if resource_type == "AWS::S3::Bucket":
                raise AWSAPIError("AWS API error: AccessDeniedException - denied")
            return await original(resource_type, next_token)

        client.list_discovered_resources.side_effect = fail_buckets

        with pytest.raises(RegionCollectionError) as exc_info:
            await _collector(client, fast_retry_executor).collect()

        assert [r.resource_id for r in exc_info.value.partial_resources] == ["i-1", "i-2"]

    @pytest.mark.asyncio
    async def test_cancellation_is_not_degraded(self, make_config_client, fast_retry_executor):
        client = make_config_client({"AWS::EC2::Instance": ["i-1"]})
        cancel_event = asyncio.Event()

        async def cancel_then_fail(keys):
            cancel_event.set()
            raise AWSAPIError("AWS API error: ThrottlingException - Rate exceeded")

        client.batch_get_resource_config.side_effect = cancel_then_fail

        with pytest.raises(RegionCollectionError) as exc_info:
            await _collector(client, fast_retry_executor, cancel_event=cancel_event).collect()

        assert isinstance(exc_info.value.cause, OperationCancelledError)


class TestProgress:
    """Tests for progress messages."""

    @pytest.mark.asyncio
    async def test_progress_messages(self, make_config_client, fast_retry_executor):
        client = make_config_client({
            "AWS::EC2::Instance": ["i-1", "i-2"],
            "AWS::SNS::Topic": [],
        })
        messages: list[str] = []

        await _collector(client, fast_retry_executor, progress=messages.append).collect()

        assert messages == [
            "[us-east-1] Starting collection",
            "[us-east-1] Found 2 resource types",
            "[us-east-1] Collected 2 AWS::EC2::Instance",
            "[us-east-1] Completed with 2 resources",
        ]

    @pytest.mark.asyncio
    async def test_no_sink_is_fine(self, make_config_client, fast_retry_executor):
        client = make_config_client({"AWS::EC2::Instance": ["i-1"]})

        resources = await _collector(client, fast_retry_executor).collect()

        assert len(resources) == 1

    @pytest.mark.asyncio
    async def test_failing_sink_does_not_change_result(self, make_config_client, fast_retry_executor):
        client = make_config_client({"AWS::EC2::Instance": ["i-1", "i-2"]})

        def broken_sink(message):
            raise RuntimeError("sink broke")

        resources = await _collector(client, fast_retry_executor, progress=broken_sink).collect()

        assert [r.resource_id for r in resources] == ["i-1", "i-2"]
        assert not any(r.is_shallow for r in resources)
