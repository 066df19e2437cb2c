#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""API routes module for the MAAS link agent."""
from typing import Any, Dict, Optional

from fastapi import FastAPI

from link_agent.models import LinkCreateRequest, LinkUpdateRequest
from .handlers import APIHandlers


def register_routes(app: FastAPI, agent_cfg: Dict[str, Any], gateway: Optional[Any] = None) -> APIHandlers:
    """Register all API routes with the FastAPI application."""
    handlers = APIHandlers(agent_cfg, gateway=gateway)
    links_path = "/v1/nodes/{system_id}/interfaces/{interface}/links"

    # Health and info endpoints
    @app.get("/healthz")
    def healthz():
        return handlers.healthz()

    @app.get("/v1/version")
    def v1_version():
        return handlers.v1_version()

    @app.get("/v1/status/{status}/classification")
    def v1_classify(status: str):
        return handlers.v1_classify(status)

    # Link management endpoints
    @app.post(links_path, status_code=201)
    def v1_link_create(system_id: str, interface: str, req: LinkCreateRequest):
        return handlers.v1_link_create(system_id, interface, req)

    @app.get(links_path + "/{link_id}")
    def v1_link_read(system_id: str, interface: str, link_id: int):
        return handlers.v1_link_read(system_id, interface, link_id)

    @app.put(links_path + "/{link_id}")
    def v1_link_update(system_id: str, interface: str, link_id: int, req: LinkUpdateRequest):
        return handlers.v1_link_update(system_id, interface, link_id, req)

    @app.delete(links_path + "/{link_id}")
    def v1_link_delete(system_id: str, interface: str, link_id: int):
        return handlers.v1_link_delete(system_id, interface, link_id)

    return handlers
