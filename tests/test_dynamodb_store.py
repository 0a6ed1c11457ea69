try:
    from . import _bootstrap  # noqa: F401
except Exception:  # pragma: no cover - fallback for direct execution
    import _bootstrap  # type: ignore # noqa: F401

import pytest

from trakt_gateway.clients.dynamodb import DynamoDBClient
from trakt_gateway.core.config import StorageSettings


class FakeTable:
    def __init__(self, page_size: int = 1) -> None:
        self.items: dict[tuple[str, str], dict] = {}
        self.page_size = page_size
        self.get_calls: list[dict] = []
        self.query_calls: list[dict] = []

    def put_item(self, *, Item: dict) -> None:
        self.items[(Item["pk"], Item["sk"])] = dict(Item)

    def get_item(self, *, Key: dict, ConsistentRead: bool = False) -> dict:
        self.get_calls.append({"Key": Key, "ConsistentRead": ConsistentRead})
        item = self.items.get((Key["pk"], Key["sk"]))
        return {"Item": item} if item else {}

    def delete_item(self, *, Key: dict, ReturnValues: str = "NONE") -> dict:
        item = self.items.pop((Key["pk"], Key["sk"]), None)
        if ReturnValues == "ALL_OLD" and item is not None:
            return {"Attributes": item}
        return {}

    def query(self, **kwargs) -> dict:
        self.query_calls.append(kwargs)
        # Key condition objects are opaque here; every stored item shares one partition.
        ordered = sorted(self.items.values(), key=lambda item: item["sk"])
        start = kwargs.get("ExclusiveStartKey")
        if start:
            ordered = [item for item in ordered if item["sk"] > start["sk"]]
        page = ordered[: self.page_size]
        response: dict = {"Items": page}
        if len(ordered) > self.page_size:
            response["LastEvaluatedKey"] = {"pk": page[-1]["pk"], "sk": page[-1]["sk"]}
        return response


@pytest.fixture()
def table() -> FakeTable:
    return FakeTable()


@pytest.fixture()
def client(table) -> DynamoDBClient:
    return DynamoDBClient(StorageSettings(), table=table)


def test_requires_table_name_without_injected_table() -> None:
    with pytest.raises(ValueError):
        DynamoDBClient(StorageSettings(DYNAMODB_TABLE_NAME=""))


def test_get_item_uses_consistent_read(client, table) -> None:
    client.put_item({"pk": "tenant_configs", "sk": "t1", "client_id": "cid"})

    item = client.get_item(partition_key="tenant_configs", sort_key="t1")

    assert item["client_id"] == "cid"
    assert table.get_calls[-1]["ConsistentRead"] is True


def test_put_item_requires_keys(client) -> None:
    with pytest.raises(ValueError):
        client.put_item({"sk": "t1"})


def test_pop_item_returns_old_attributes_once(client) -> None:
    client.put_item({"pk": "pending_authorizations", "sk": "s1", "tenant_id": "t1"})

    assert client.pop_item(partition_key="pending_authorizations", sort_key="s1") == {
        "pk": "pending_authorizations",
        "sk": "s1",
        "tenant_id": "t1",
    }
    assert client.pop_item(partition_key="pending_authorizations", sort_key="s1") is None


def test_query_items_follows_pagination(client, table) -> None:
    for state in ("s1", "s2", "s3"):
        client.put_item({"pk": "pending_authorizations", "sk": state})

    items = client.query_items(partition_key="pending_authorizations")

    assert [item["sk"] for item in items] == ["s1", "s2", "s3"]
    assert len(table.query_calls) == 3
    assert table.query_calls[1]["ExclusiveStartKey"] == {
        "pk": "pending_authorizations",
        "sk": "s1",
    }
