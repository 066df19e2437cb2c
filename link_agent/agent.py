#!/usr/bin/env python3
# -*- coding: utf-8 -*-
# Licensed to the Apache Software Foundation (ASF) under one
# or more contributor license agreements.  See the NOTICE file
# distributed with this work for additional information
# regarding copyright ownership.  The ASF licenses this file
# to you under the Apache License, Version 2.0 (the
# "License"); you may not use this file except in compliance
# with the License.  You may obtain a copy of the License at
#
#   http://www.apache.org/licenses/LICENSE-2.0
#
# Unless required by applicable law or agreed to in writing,
# software distributed under the License is distributed on an
# "AS IS" BASIS, WITHOUT WARRANTIES OR CONDITIONS OF ANY
# KIND, either express or implied.  See the License for the
# specific language governing permissions and limitations
# under the License.
from __future__ import annotations

import logging
import os
import ssl
from pathlib import Path
from typing import Any, Dict, Optional

import uvicorn
from fastapi import FastAPI, HTTPException, Request
from fastapi.exceptions import RequestValidationError
from starlette.responses import JSONResponse

from link_agent.api import register_routes
from link_agent.api.handlers import VERSION
from link_agent.cli import CLICommands, build_cli
from link_agent.config import ConfigManager

logger = logging.getLogger("link-agent")
logger.setLevel(logging.INFO)
_DEF_HANDLER_SET = False


def apply_logging_from_cfg(cfg: Dict[str, Any]) -> None:
    """Apply logging configuration from agent config."""
    global _DEF_HANDLER_SET
    if _DEF_HANDLER_SET:
        return
    log_cfg = cfg.get("logging", {}) or {}
    level = str(log_cfg.get("level", "INFO")).upper()
    try:
        logger.setLevel(getattr(logging, level))
    except AttributeError:
        logger.setLevel(logging.INFO)
    # Add console handler if not present
    if not logger.handlers:
        handler = logging.StreamHandler()
        formatter = logging.Formatter("%(asctime)s - %(name)s - %(levelname)s - %(message)s")
        handler.setFormatter(formatter)
        logger.addHandler(handler)
    _DEF_HANDLER_SET = True


_CLIENT_AUTH_MODES = {
    "none": ssl.CERT_NONE,
    "optional": ssl.CERT_OPTIONAL,
    "required": ssl.CERT_REQUIRED,
}


def build_tls_options(security_cfg: Any) -> Dict[str, Any]:
    """Map `security.tls` onto uvicorn's ssl_* keyword arguments ({} when TLS is off)."""
    section = (security_cfg or {}).get("tls") if isinstance(security_cfg, dict) else None
    if not isinstance(section, dict) or not section or section.get("enabled") is False:
        logger.info("Serving plain HTTP")
        return {}
    files = {name: section.get(name) for name in ("cert_file", "key_file", "ca_file")}
    if not (files["cert_file"] and files["key_file"]):
        raise RuntimeError("security.tls requires both cert_file/key_file")
    missing = [f"{name}={path}" for name, path in files.items() if path and not Path(path).exists()]
    if missing:
        raise RuntimeError("TLS file(s) not found: " + ", ".join(missing))
    mode = str(section.get("client_auth") or "none").strip().lower()
    if mode not in _CLIENT_AUTH_MODES:
        raise RuntimeError(f"security.tls.client_auth must be one of {sorted(_CLIENT_AUTH_MODES)}, got '{mode}'")
    options: Dict[str, Any] = {
        "ssl_certfile": files["cert_file"],
        "ssl_keyfile": files["key_file"],
        "ssl_cert_reqs": _CLIENT_AUTH_MODES[mode],
    }
    if files["ca_file"]:
        options["ssl_ca_certs"] = files["ca_file"]
    logger.info("Serving HTTPS (client_auth=%s)", mode)
    return options


def create_app(agent_cfg: Dict[str, Any], gateway: Optional[Any] = None) -> FastAPI:
    """Build the FastAPI application for the given config."""
    app = FastAPI(title="MAAS Link Agent", version=VERSION)

    @app.middleware("http")
    async def request_logging_middleware(request: Request, call_next):
        """Log incoming requests immediately upon receipt."""
        logger.info("%s %s", request.method, request.url.path)
        return await call_next(request)

    @app.get("/", include_in_schema=False)
    def root():
        return {"status": "ok", "message": "MAAS Link Agent is running", "version": VERSION}

    @app.exception_handler(RequestValidationError)
    async def validation_exception_handler(request: Request, exc: RequestValidationError):
        """Handle request validation errors."""
        logger.error("Validation error: %s", exc)
        return JSONResponse(status_code=422, content={"error": "Validation error", "detail": exc.errors()})

    @app.exception_handler(HTTPException)
    async def http_exception_handler(request: Request, exc: HTTPException):
        """Handle HTTP exceptions."""
        logger.error("HTTP error: %s", exc.detail)
        return JSONResponse(status_code=exc.status_code, content={"error": exc.detail})

    @app.exception_handler(Exception)
    async def general_exception_handler(request: Request, exc: Exception):
        """Handle general exceptions."""
        logger.exception("Unhandled exception: %s", exc)
        return JSONResponse(status_code=500, content={"error": "Internal server error"})

    register_routes(app, agent_cfg, gateway=gateway)
    return app


def main():
    """Main entry point."""
    agent_cfg = ConfigManager().load_agent_config()
    apply_logging_from_cfg(agent_cfg)
    # Run API by default; set LINK_AGENT_MODE=cli to use the local CLI instead
    mode = os.environ.get("LINK_AGENT_MODE", "api").lower()
    if mode == "cli":
        build_cli(lambda: CLICommands(agent_cfg))()
        return
    logger.info("Starting MAAS Link Agent (driver=%s)", agent_cfg["backend"]["driver"])
    tls_options = build_tls_options(agent_cfg.get("security", {}))
    app = create_app(agent_cfg)
    uvicorn.run(app, host=agent_cfg["bind_host"], port=agent_cfg["bind_port"], reload=False, **tls_options)


if __name__ == "__main__":
    main()
