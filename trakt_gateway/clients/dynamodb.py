"""
DynamoDB-backed key-value record storage.

Uses a single table with a ``pk`` partition key and ``sk`` sort key.
"""

from __future__ import annotations

from typing import Any, Dict, Optional

import boto3
from boto3.dynamodb.conditions import Key

from trakt_gateway.core.config import StorageSettings


class DynamoDBClient:
    """CRUD operations for tenant and pending-authorization records."""

    def __init__(self, settings: StorageSettings, table: Any | None = None) -> None:
        if table is None:
            if not settings.dynamodb_table_name:
                raise ValueError("DYNAMODB_TABLE_NAME is required for the dynamodb backend.")
            resource = boto3.resource("dynamodb", region_name=settings.region_name)
            table = resource.Table(settings.dynamodb_table_name)
        self._table = table

    def put_item(self, item: Dict[str, Any]) -> None:
        """Put an item in the DynamoDB table."""
        if not item.get("pk") or not item.get("sk"):
            raise ValueError("Item must include 'pk' and 'sk' keys")
        self._table.put_item(Item=item)

    def get_item(self, *, partition_key: str, sort_key: str) -> Optional[Dict[str, Any]]:
        """Retrieve an item using a strongly consistent read."""
        response = self._table.get_item(
            Key={"pk": partition_key, "sk": sort_key},
            ConsistentRead=True,
        )
        return response.get("Item")

    def delete_item(self, *, partition_key: str, sort_key: str) -> None:
        self._table.delete_item(Key={"pk": partition_key, "sk": sort_key})

    def pop_item(self, *, partition_key: str, sort_key: str) -> Optional[Dict[str, Any]]:
        """Delete an item and return its previous attributes, if it existed."""
        response = self._table.delete_item(
            Key={"pk": partition_key, "sk": sort_key},
            ReturnValues="ALL_OLD",
        )
        return response.get("Attributes")

    def query_items(self, *, partition_key: str) -> list[Dict[str, Any]]:
        """Query every item sharing a partition key, following pagination."""
        kwargs: Dict[str, Any] = {"KeyConditionExpression": Key("pk").eq(partition_key)}
        items: list[Dict[str, Any]] = []
        while True:
            response = self._table.query(**kwargs)
            items.extend(response.get("Items", []))
            last_key = response.get("LastEvaluatedKey")
            if not last_key:
                return items
            kwargs["ExclusiveStartKey"] = last_key


__all__ = ["DynamoDBClient"]
