# Copyright (c) 2025-2026 OptimNow. All Rights Reserved.
# Licensed under the Apache License, Version 2.0.
# See LICENSE file in the project root for full license information.

"""AWS resource data model."""

import json
from typing import Any

from pydantic import BaseModel, ConfigDict, Field


class ResourceRecord(BaseModel):
    """Represents one AWS resource discovered by AWS Config.

    Records built from the listing call only ("shallow" records) carry the
    identifier, name, region and type; account, ARN, availability zone and
    configuration are left unset.
    """

    model_config = ConfigDict(
        populate_by_name=True,
        json_schema_extra={
            "example": {
                "resourceType": "AWS::EC2::Instance",
                "resourceId": "i-1234567890abcdef0",
                "resourceName": "web-1",
                "awsRegion": "us-east-1",
                "availabilityZone": "us-east-1a",
                "accountId": "123456789012",
                "arn": "arn:aws:ec2:us-east-1:123456789012:instance/i-1234567890abcdef0",
            }
        },
    )

    resource_type: str = Field(
        ..., alias="resourceType", description="AWS Config resource type (e.g., AWS::EC2::Instance)"
    )
    resource_id: str = Field(..., alias="resourceId", description="AWS resource identifier")
    resource_name: str | None = Field(
        None, alias="resourceName", description="Human-readable resource name"
    )
    region: str = Field(..., alias="awsRegion", description="AWS region the resource was collected from")
    availability_zone: str | None = Field(
        None, alias="availabilityZone", description="Availability zone, if any"
    )
    account_id: str | None = Field(None, alias="accountId", description="Owning AWS account ID")
    arn: str | None = Field(None, description="Full ARN of the resource")
    configuration: Any = Field(
        None, description="Opaque configuration payload as reported by AWS Config"
    )
    tags: dict[str, str] | None = Field(None, description="Tags associated with the resource")

    @property
    def is_shallow(self) -> bool:
        """True when the record was built without detail resolution."""
        return self.account_id is None and self.arn is None and self.configuration is None


def decode_configuration(raw: str | None) -> Any:
    """
    Decode the configuration string returned by BatchGetResourceConfig.

    AWS Config returns the configuration as a JSON document encoded in a
    string. It is decoded so that it is embedded as structure when the
    inventory is serialized; anything that is not valid JSON is kept as-is.

    Args:
        raw: Configuration string from the API (may be None)

    Returns:
        Decoded JSON value, the original string, or None
    """
    if raw is None:
        return None
    try:
        return json.loads(raw)
    except (TypeError, ValueError):
        return raw
