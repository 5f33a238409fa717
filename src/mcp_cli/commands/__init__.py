"""
MIT License
Copyright (c) 2026 arpan404
See LICENSE file for full license text.

Command implementations. Each command takes its options plus a
``CommandContext`` and returns the process exit status; failures are
raised as ``MCPCliError``.
"""

from .cache import CacheOptions, cache_command
from .call import CallOptions, call_command
from .context import CommandContext
from .info import InfoOptions, info_command
from .listing import ListOptions, ServerTools, collect_server_tools, list_command
from .search import GrepOptions, SearchMatch, ServerSearchResult, grep_command, search_tools

__all__ = [
    "CacheOptions",
    "CallOptions",
    "CommandContext",
    "GrepOptions",
    "InfoOptions",
    "ListOptions",
    "SearchMatch",
    "ServerSearchResult",
    "ServerTools",
    "cache_command",
    "call_command",
    "collect_server_tools",
    "grep_command",
    "info_command",
    "list_command",
    "search_tools",
]
