"""
Pydantic models for request/response validation.
"""

from __future__ import annotations

from typing import Any, Literal

from pydantic import BaseModel, Field, field_validator

from earlybadge.common.principal import Principal

U64_MAX = 2**64 - 1


class Badge(BaseModel):
    id: int = Field(ge=0, le=U64_MAX)
    owner: str
    metadata: str
    timestamp: int = Field(ge=0, le=U64_MAX)

    @field_validator("owner")
    @classmethod
    def owner_is_principal(cls, value: str) -> str:
        Principal.from_text(value)
        return value

    @property
    def owner_principal(self) -> Principal:
        return Principal.from_text(self.owner)


class Delegation(BaseModel):
    pubkey: str
    expiration: int
    signature: str

    def signed_body(self) -> dict[str, Any]:
        return {"pubkey": self.pubkey, "expiration": self.expiration}


class CallContent(BaseModel):
    request_type: Literal["query", "call"]
    registry_id: str
    method_name: str
    arg: list[Any] = Field(default_factory=list)
    sender: str
    ingress_expiry: int
    nonce: str


class Envelope(BaseModel):
    content: CallContent
    sender_pubkey: str | None = None
    sender_sig: str | None = None
    sender_delegation: Delegation | None = None


class CallResponse(BaseModel):
    status: Literal["replied", "rejected"]
    reply: Any = None
    certificate: str | None = None
    reject_code: int | None = None
    reject_message: str | None = None


class StatusResponse(BaseModel):
    root_key: str
    network: str
    impl_version: str


class AuthorizeRequest(BaseModel):
    session_pubkey: str
    anchor: str | None = None
    max_time_to_live: int = Field(gt=0)


class AuthorizeResponse(BaseModel):
    status: Literal["approved", "denied"]
    user_pubkey: str | None = None
    delegation: Delegation | None = None
    reason: str | None = None


class RegistryState(BaseModel):
    admin: str
    next_id: int = 1
    tokens: dict[int, Badge] = Field(default_factory=dict)


class ClientConfig(BaseModel):
    network_url: str | None = None
    registry_id: str | None = None
    identity_provider_url: str | None = None
    network: str | None = None
    root_key: str | None = None
    supply_cap: int | None = Field(default=None, ge=0)
    request_timeout: float | None = Field(default=None, gt=0)
    login_timeout: float | None = Field(default=None, gt=0)
    anchor: str | None = None
    log_level: int | None = None
