#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
Configuration management module for the MAAS link agent.
This module handles agent configuration loading and validation.
"""
import json
import logging
import os
from pathlib import Path
from typing import Any, Dict

from link_agent.utils.validation import deep_update, is_truthy

logger = logging.getLogger("link-agent")

DEFAULT_CONFIG_PATH = "/etc/maas-link-agent/agent.json"

# env var -> (section, key)
_ENV_OVERRIDES = {
    "MAAS_URL": ("maas", "url"),
    "MAAS_API_KEY": ("maas", "api_key"),
    "MAAS_API_VERSION": ("maas", "api_version"),
    "LINK_AGENT_DRIVER": ("backend", "driver"),
    "LINK_AGENT_LOG_LEVEL": ("logging", "level"),
}


class ConfigManager:
    """Manager for configuration operations."""

    def __init__(self, config_path: str = ""):
        self.config_path = config_path or os.environ.get("LINK_AGENT_CONFIG", DEFAULT_CONFIG_PATH)

    def load_agent_config(self) -> Dict[str, Any]:
        """Load agent config and validate it.
        Precedence: env > JSON file (LINK_AGENT_CONFIG) > built-in defaults.
        On any parse/syntax error or missing required keys the agent does NOT start.
        """
        cfg: Dict[str, Any] = {
            "bind_host": "0.0.0.0",
            "bind_port": 8090,
            "backend": {"driver": "maas"},
            "maas": {"url": "", "api_key": "", "api_version": "2.0", "timeout": 30},
            "logging": {"level": "INFO"},
            "security": {"tls": {"enabled": False}},
        }
        p = Path(self.config_path)
        if p.exists():
            with p.open("r", encoding="utf-8") as f:
                try:
                    file_cfg = json.load(f)
                except Exception as e:
                    # Fail fast: do not start with an invalid config
                    raise RuntimeError(f"Invalid JSON in LINK_AGENT_CONFIG='{self.config_path}': {e}") from e
            if not isinstance(file_cfg, dict):
                raise RuntimeError(f"LINK_AGENT_CONFIG='{self.config_path}' must contain a JSON object")
            deep_update(cfg, file_cfg)
        else:
            logger.info("Config file %s not found, using defaults and environment", self.config_path)
        for env_name, (section, key) in _ENV_OVERRIDES.items():
            value = os.environ.get(env_name)
            if value:
                cfg.setdefault(section, {})[key] = value
        try:
            cfg["bind_port"] = int(cfg["bind_port"])
        except (TypeError, ValueError) as e:
            raise RuntimeError(f"Invalid bind_port value: {cfg['bind_port']}") from e
        maas_cfg = cfg["maas"]
        maas_cfg["skip_ssl_verification"] = is_truthy(maas_cfg.get("skip_ssl_verification", False))
        self.validate(cfg)
        return cfg

    def validate(self, cfg: Dict[str, Any]) -> None:
        """Check the keys required by the selected backend driver."""
        driver = str(cfg.get("backend", {}).get("driver", "")).strip().lower()
        if driver not in ("maas", "memory"):
            raise RuntimeError(f"Unsupported backend.driver '{driver}'")
        if driver != "maas":
            return
        maas_cfg = cfg.get("maas", {})
        if not maas_cfg.get("url"):
            raise RuntimeError("maas.url is required (config file or MAAS_URL)")
        api_key = str(maas_cfg.get("api_key", ""))
        parts = api_key.split(":")
        if len(parts) != 3 or not all(parts):
            raise RuntimeError("maas.api_key is required in the form 'consumer:token:secret' (config file or MAAS_API_KEY)")
        ca_bundle = maas_cfg.get("ca_bundle")
        if ca_bundle and not Path(ca_bundle).exists():
            raise RuntimeError(f"maas.ca_bundle not found at {ca_bundle}")
