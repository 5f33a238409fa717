"""
MIT License
Copyright (c) 2026 arpan404
See LICENSE file for full license text.

Type models and protocols for server sessions.
"""

from __future__ import annotations

from collections.abc import Awaitable, Callable
from dataclasses import dataclass, field
from typing import Any, Protocol

from ..config import ServerConfig


@dataclass(frozen=True, slots=True)
class ToolInfo:
    """
    One invocable tool exposed by a server.

    Attributes:
        name: Tool name, unique within its server.
        description: Optional human-readable description.
        input_schema: JSON schema document describing the tool arguments.
    """

    name: str
    description: str | None = None
    input_schema: dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        """Serialize using the wire field names."""
        return {
            "name": self.name,
            "description": self.description,
            "inputSchema": self.input_schema,
        }

    @classmethod
    def from_dict(cls, row: Any) -> "ToolInfo":
        if not isinstance(row, dict):
            raise ValueError("tool entry must be an object")
        name = row.get("name")
        if not isinstance(name, str):
            raise ValueError("tool entry requires a string 'name'")
        description = row.get("description")
        schema = row.get("inputSchema")
        return cls(
            name=name,
            description=description if isinstance(description, str) else None,
            input_schema=schema if isinstance(schema, dict) else {},
        )


@dataclass(frozen=True, slots=True)
class ServerInfo:
    """Identity reported by a server during the initialize handshake."""

    name: str
    version: str | None = None
    protocol_version: str | None = None


class Session(Protocol):
    """Open session to one server."""

    server_info: ServerInfo | None

    async def list_tools(self) -> list[ToolInfo]: ...

    async def call_tool(self, name: str, arguments: dict[str, Any]) -> dict[str, Any]: ...

    async def close(self) -> None: ...


class Connector(Protocol):
    """Opens sessions; raises on transport or handshake failure."""

    async def connect(self, server_name: str, config: ServerConfig) -> Session: ...


CloseFn = Callable[[], Awaitable[None]]


@dataclass(slots=True)
class ConnectedClient:
    """Session handle plus the close operation the caller must invoke."""

    session: Session
    close: CloseFn


class RetryBudgetExhaustedError(TimeoutError):
    """Raised when the retry budget runs out before any attempt completed."""


class ToolCallError(RuntimeError):
    """Raised when a server reports a tool result flagged as an error."""
