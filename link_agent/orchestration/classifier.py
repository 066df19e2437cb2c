#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
Machine status classification.
Maps a machine status to the category that decides how a link can be removed.
"""
import enum
from typing import Any, Dict, Optional

from link_agent.models import NodeStatus


class StatusCategory(str, enum.Enum):
    VALID = "valid"
    TRANSITIONAL = "transitional"
    NON_TRANSITIONAL = "non-transitional"
    UNKNOWN = "unknown"


# Every NodeStatus member must appear exactly once. A new status stays UNKNOWN
# until it is added here.
_CATEGORIES: Dict[NodeStatus, StatusCategory] = {
    NodeStatus.NEW: StatusCategory.VALID,
    NodeStatus.READY: StatusCategory.VALID,
    NodeStatus.ALLOCATED: StatusCategory.VALID,
    NodeStatus.BROKEN: StatusCategory.VALID,
    NodeStatus.COMMISSIONING: StatusCategory.TRANSITIONAL,
    NodeStatus.DEPLOYING: StatusCategory.TRANSITIONAL,
    NodeStatus.RELEASING: StatusCategory.TRANSITIONAL,
    NodeStatus.DISK_ERASING: StatusCategory.TRANSITIONAL,
    NodeStatus.ENTERING_RESCUE_MODE: StatusCategory.TRANSITIONAL,
    NodeStatus.EXITING_RESCUE_MODE: StatusCategory.TRANSITIONAL,
    NodeStatus.TESTING: StatusCategory.TRANSITIONAL,
    NodeStatus.FAILED_COMMISSIONING: StatusCategory.NON_TRANSITIONAL,
    NodeStatus.MISSING: StatusCategory.NON_TRANSITIONAL,
    NodeStatus.RESERVED: StatusCategory.NON_TRANSITIONAL,
    NodeStatus.DEPLOYED: StatusCategory.NON_TRANSITIONAL,
    NodeStatus.RETIRED: StatusCategory.NON_TRANSITIONAL,
    NodeStatus.FAILED_DEPLOYMENT: StatusCategory.NON_TRANSITIONAL,
    NodeStatus.FAILED_RELEASING: StatusCategory.NON_TRANSITIONAL,
    NodeStatus.FAILED_DISK_ERASING: StatusCategory.NON_TRANSITIONAL,
    NodeStatus.RESCUE_MODE: StatusCategory.NON_TRANSITIONAL,
    NodeStatus.FAILED_ENTERING_RESCUE_MODE: StatusCategory.NON_TRANSITIONAL,
    NodeStatus.FAILED_EXITING_RESCUE_MODE: StatusCategory.NON_TRANSITIONAL,
    NodeStatus.FAILED_TESTING: StatusCategory.NON_TRANSITIONAL,
}

# MAAS display names (status_name) that differ from the enum member names.
_DISPLAY_NAMES: Dict[str, NodeStatus] = {
    "releasing failed": NodeStatus.FAILED_RELEASING,
    "failed to enter rescue mode": NodeStatus.FAILED_ENTERING_RESCUE_MODE,
    "failed to exit rescue mode": NodeStatus.FAILED_EXITING_RESCUE_MODE,
}


def _normalize(name: str) -> str:
    return " ".join(name.strip().lower().replace("_", " ").replace("-", " ").split())


def parse_status(status: Any) -> Optional[NodeStatus]:
    """Resolve a status value (member, int code or name) to NodeStatus, or None."""
    if isinstance(status, NodeStatus):
        return status
    if isinstance(status, bool):
        return None
    if isinstance(status, int):
        try:
            return NodeStatus(status)
        except ValueError:
            return None
    if isinstance(status, str):
        key = _normalize(status)
        if key.isdigit():
            return parse_status(int(key))
        if key in _DISPLAY_NAMES:
            return _DISPLAY_NAMES[key]
        for member in NodeStatus:
            if _normalize(member.name) == key:
                return member
    return None


def classify(status: Any) -> StatusCategory:
    """Return the teardown category of a machine status. Unrecognized values are UNKNOWN."""
    member = parse_status(status)
    if member is None:
        return StatusCategory.UNKNOWN
    return _CATEGORIES.get(member, StatusCategory.UNKNOWN)
