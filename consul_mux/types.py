"""Core value types: HTTP request/response and decoded Consul payloads."""

from __future__ import annotations

import base64
from dataclasses import dataclass
from typing import Any
from urllib.parse import urlsplit

from pydantic import BaseModel, ConfigDict, Field, ValidationInfo, field_validator


@dataclass(frozen=True)
class Request:
    """A single HTTP request handed to the transport."""

    method: str
    uri: str
    body: bytes = b""

    @property
    def path(self) -> str:
        return urlsplit(self.uri).path

    @property
    def query(self) -> str:
        return urlsplit(self.uri).query


@dataclass(frozen=True)
class Response:
    """Status code and raw body returned by the transport."""

    status: int
    body: bytes = b""


class KVEntry(BaseModel):
    """A key/value entry as returned by ``GET /v1/kv/{key}``.

    ``value`` is left base64-encoded, exactly as Consul sends it.
    """

    model_config = ConfigDict(populate_by_name=True, frozen=True)

    create_index: int = Field(alias="CreateIndex")
    modify_index: int = Field(alias="ModifyIndex")
    lock_index: int = Field(alias="LockIndex")
    key: str = Field(alias="Key")
    flags: int = Field(alias="Flags", ge=0)
    value: str | None = Field(alias="Value")
    session: str | None = Field(default=None, alias="Session")

    def decoded_value(self) -> bytes:
        """Base64-decode ``value``; keys stored without a value give b""."""
        if self.value is None:
            return b""
        return base64.b64decode(self.value)

    def to_dict(self) -> dict:
        """Serialize with Consul's PascalCase field names."""
        return self.model_dump(by_alias=True)


class ServiceNode(BaseModel):
    """A catalog entry as returned by ``GET /v1/catalog/service/{name}``."""

    model_config = ConfigDict(populate_by_name=True, frozen=True)

    kind: str = Field(alias="ServiceKind")
    id: str = Field(alias="ID")
    service_id: str = Field(alias="ServiceID")
    service_name: str = Field(alias="ServiceName")
    tags: list[str] = Field(default_factory=list, alias="ServiceTags")
    meta: dict[str, str] = Field(default_factory=dict, alias="ServiceMeta")
    node: str = Field(alias="Node")
    address: str = Field(alias="Address")
    datacenter: str = Field(alias="Datacenter")

    @field_validator("tags", "meta", mode="before")
    @classmethod
    def _null_as_empty(cls, value: Any, info: ValidationInfo) -> Any:
        # Consul sends null for services registered without tags or meta
        if value is None:
            return [] if info.field_name == "tags" else {}
        return value

    def to_dict(self) -> dict:
        """Serialize with Consul's field names."""
        return self.model_dump(by_alias=True)
