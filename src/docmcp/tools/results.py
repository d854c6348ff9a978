"""
Backing operation results

A tool either produces a ToolResult or a SoftError. Both are delivered to the
caller as an ordinary tools/call success; hard errors are exceptions and never
travel through these types.
"""

from dataclasses import dataclass
from typing import Any, Dict, Optional


class RequestCancelled(Exception):
    """The caller disconnected before the operation reached the store."""


@dataclass(frozen=True)
class ToolResult:
    payload: Any


@dataclass(frozen=True)
class SoftError:
    """An operation that completed without a result: bad input or no data."""

    payload: Dict[str, Any]

    @classmethod
    def error(cls, message: str, status_code: Optional[int] = None) -> "SoftError":
        payload: Dict[str, Any] = {"error": message}
        if status_code is not None:
            payload["statusCode"] = status_code
        return cls(payload)
