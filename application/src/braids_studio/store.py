"""String key-value store: one DynamoDB item per key, each value a full JSON snapshot."""

from __future__ import annotations

import os
from datetime import datetime, timezone
from typing import Protocol

import boto3
from botocore.config import Config

PK = "store_key"

CLIENTS_KEY = "trigueira_clients"
APPOINTMENTS_KEY = "trigueira_appointments"
FINANCES_KEY = "trigueira_finances"
KANBAN_KEY = "trigueira_kanban"
SETTINGS_KEY = "trigueira_settings"
AUTH_KEY = "trigueira_auth"


class KeyValueStore(Protocol):
    def get(self, key: str) -> str | None: ...

    def set(self, key: str, value: str) -> None: ...

    def remove(self, key: str) -> None: ...


def _client():
    endpoint = os.environ.get("DYNAMODB_ENDPOINT_URL")
    region = os.environ.get("AWS_REGION", "sa-east-1")
    kwargs = {"region_name": region}
    if endpoint:
        kwargs["endpoint_url"] = endpoint
    return boto3.client("dynamodb", config=Config(retries={"mode": "standard", "max_attempts": 3}), **kwargs)


def _table_name() -> str:
    return os.environ.get("DYNAMODB_TABLE_NAME", "studio_store")


def create_table(client=None, table: str | None = None) -> bool:
    """Create the store table keyed by PK. Returns False if it already exists."""
    ddb = client or _client()
    try:
        ddb.create_table(
            TableName=table or _table_name(),
            KeySchema=[{"AttributeName": PK, "KeyType": "HASH"}],
            AttributeDefinitions=[{"AttributeName": PK, "AttributeType": "S"}],
            BillingMode="PAY_PER_REQUEST",
        )
    except ddb.exceptions.ResourceInUseException:
        return False
    return True


class DynamoStore:
    """Each key is its own item; set() overwrites the whole item (no partial updates)."""

    def __init__(self, client=None, table: str | None = None):
        self._ddb = client or _client()
        self._table = table or _table_name()

    def get(self, key: str) -> str | None:
        try:
            resp = self._ddb.get_item(
                TableName=self._table,
                Key={PK: {"S": key}},
                ProjectionExpression="#v",
                ExpressionAttributeNames={"#v": "value"},
            )
        except self._ddb.exceptions.ResourceNotFoundException:
            return None
        item = resp.get("Item") or {}
        value = item.get("value")
        if not value:
            return None
        return value.get("S")

    def set(self, key: str, value: str) -> None:
        now = datetime.now(timezone.utc).isoformat()
        self._ddb.put_item(
            TableName=self._table,
            Item={
                PK: {"S": key},
                "value": {"S": value},
                "updated_at": {"S": now},
            },
        )

    def remove(self, key: str) -> None:
        self._ddb.delete_item(TableName=self._table, Key={PK: {"S": key}})


class MemoryStore:
    """Process-local store for development and tests."""

    def __init__(self, initial: dict[str, str] | None = None):
        self.data: dict[str, str] = dict(initial or {})

    def get(self, key: str) -> str | None:
        return self.data.get(key)

    def set(self, key: str, value: str) -> None:
        self.data[key] = value

    def remove(self, key: str) -> None:
        self.data.pop(key, None)


def default_store() -> KeyValueStore:
    """Backend from STORE_BACKEND: 'dynamodb' (default) or 'memory'."""
    backend = (os.environ.get("STORE_BACKEND") or "dynamodb").strip().lower()
    if backend == "memory":
        return MemoryStore()
    return DynamoStore()
