"""
Routes for the development replica.
"""

from typing import Any

from fastapi import FastAPI, HTTPException

from earlybadge.common.exceptions import ValidationError
from earlybadge.common.models import (
    AuthorizeRequest,
    AuthorizeResponse,
    CallResponse,
    Envelope,
    StatusResponse,
)

from .services import DevIdentityProvider, RegistryService


class RegistryRoutes:
    """Handles FastAPI routes for the registry gateway and identity provider."""

    def __init__(self, service: RegistryService, identity_provider: DevIdentityProvider):
        self.service = service
        self.identity_provider = identity_provider

    def setup_routes(self, app: FastAPI) -> None:
        """Setup API routes on the FastAPI app."""
        app.get("/health")(self.health)
        app.get("/api/v2/status")(self.status)
        app.post("/api/v2/canister/{registry_id}/query")(self.query)
        app.post("/api/v2/canister/{registry_id}/call")(self.call)
        app.post("/authorize")(self.authorize)

    async def health(self) -> dict[str, Any]:
        """Handle /health endpoint."""
        return self.service.health()

    async def status(self) -> StatusResponse:
        """Handle /api/v2/status endpoint."""
        return self.service.status()

    async def query(self, registry_id: str, envelope: Envelope) -> CallResponse:
        """Handle read-only registry calls."""
        try:
            return self.service.handle(registry_id, "query", envelope)
        except ValidationError as e:
            raise HTTPException(e.status_code, str(e))

    async def call(self, registry_id: str, envelope: Envelope) -> CallResponse:
        """Handle state-changing registry calls."""
        try:
            return self.service.handle(registry_id, "call", envelope)
        except ValidationError as e:
            raise HTTPException(e.status_code, str(e))

    async def authorize(self, req: AuthorizeRequest) -> AuthorizeResponse:
        """Handle /authorize endpoint of the identity provider."""
        return self.identity_provider.authorize(req)
