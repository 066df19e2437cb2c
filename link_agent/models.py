#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
Data models for the MAAS link agent.
This module contains the data classes used throughout the application.
"""
import dataclasses
import enum
import ipaddress
from typing import Any, List, Optional, Union

from pydantic import BaseModel


class NodeStatus(enum.IntEnum):
    """Machine status codes as reported by the MAAS API."""

    NEW = 0
    COMMISSIONING = 1
    FAILED_COMMISSIONING = 2
    MISSING = 3
    READY = 4
    RESERVED = 5
    DEPLOYED = 6
    RETIRED = 7
    BROKEN = 8
    DEPLOYING = 9
    ALLOCATED = 10
    FAILED_DEPLOYMENT = 11
    RELEASING = 12
    FAILED_RELEASING = 13
    DISK_ERASING = 14
    FAILED_DISK_ERASING = 15
    RESCUE_MODE = 16
    ENTERING_RESCUE_MODE = 17
    FAILED_ENTERING_RESCUE_MODE = 18
    EXITING_RESCUE_MODE = 19
    FAILED_EXITING_RESCUE_MODE = 20
    TESTING = 21
    FAILED_TESTING = 22


class LinkMode(str, enum.Enum):
    """The vocabulary of possible types to link a subnet to an interface."""

    AUTO = "auto"
    DHCP = "dhcp"
    STATIC = "static"
    LINK_UP = "link_up"

    @classmethod
    def parse(cls, value: Union[str, "LinkMode"]) -> "LinkMode":
        """Parse a mode name case-insensitively ("STATIC", "static", "link_up")."""
        if isinstance(value, cls):
            return value
        key = str(value or "").strip().lower()
        for mode in cls:
            if mode.value == key:
                return mode
        raise ValueError(f"Invalid link mode '{value}'. Valid options are AUTO, DHCP, STATIC, LINK_UP")


@dataclasses.dataclass
class Node:
    """A managed machine. `status` is kept exactly as the gateway reported it."""

    system_id: str
    status: Any
    hostname: str = ""
    status_name: str = ""


@dataclasses.dataclass
class Subnet:
    """Subnet reference."""

    id: int
    cidr: str = ""
    name: str = ""


@dataclasses.dataclass
class Link:
    """Binding of a network interface to a subnet."""

    id: int
    mode: LinkMode
    subnet: Optional[Subnet] = None
    ip_address: str = ""
    default_gateway: bool = False


@dataclasses.dataclass
class NetworkInterface:
    """Network interface of a machine, with its current links."""

    id: int
    name: str = ""
    mac_address: str = ""
    system_id: str = ""
    links: List[Link] = dataclasses.field(default_factory=list)


@dataclasses.dataclass
class LinkParams:
    """Parameters for a link_subnet call."""

    subnet: int
    mode: LinkMode = LinkMode.AUTO
    default_gateway: bool = False
    ip_address: str = ""

    def validate(self) -> None:
        """Check parameter combinations. Raise ValueError on error."""
        self.mode = LinkMode.parse(self.mode)
        if self.ip_address:
            try:
                ipaddress.ip_address(self.ip_address)
            except ValueError as exc:
                raise ValueError(f"Invalid ip_address '{self.ip_address}'") from exc
        if self.mode == LinkMode.STATIC and not self.ip_address:
            raise ValueError("ip_address is required when mode is STATIC")
        if self.default_gateway and self.mode not in (LinkMode.AUTO, LinkMode.STATIC):
            raise ValueError("default_gateway can only be used with the AUTO and STATIC modes")


@dataclasses.dataclass
class ReleaseParams:
    """Parameters for a machine release call."""

    comment: str = ""
    erase: bool = False
    secure_erase: bool = False
    quick_erase: bool = False
    force: bool = False


class LinkCreateRequest(BaseModel):
    """FastAPI model for the link create endpoint."""

    subnet: Union[int, str]
    mode: str = "AUTO"
    default_gateway: bool = False
    ip_address: Optional[str] = None


class LinkUpdateRequest(BaseModel):
    """FastAPI model for the link update endpoint."""

    default_gateway: bool = False
