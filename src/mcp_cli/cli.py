"""
MIT License
Copyright (c) 2026 arpan404
See LICENSE file for full license text.

Command-line entry point.

Commands:
    mcp-cli                         List all servers and tools
    mcp-cli grep <pattern>          Search tools by glob pattern
    mcp-cli <server>                Show server details
    mcp-cli <server>/<tool>         Show tool schema
    mcp-cli <server>/<tool> <json>  Call tool with arguments
    mcp-cli cache <stats|clear>     Inspect or clear the tool list cache
"""

from __future__ import annotations

import argparse
import asyncio
import logging
import signal
import sys
from collections.abc import Mapping, Sequence
from dataclasses import dataclass
from typing import Any, Literal, TextIO

from . import __version__
from .client.transport import SdkConnector
from .client.types import Connector
from .commands import (
    CacheOptions,
    CallOptions,
    CommandContext,
    GrepOptions,
    InfoOptions,
    ListOptions,
    cache_command,
    call_command,
    grep_command,
    info_command,
    list_command,
)
from .errors import (
    CommandError,
    ErrorCode,
    MCPCliError,
    missing_argument_error,
    unknown_option_error,
    usage_error,
)
from .settings import (
    DEFAULT_CACHE_TTL_S,
    DEFAULT_CONCURRENCY,
    DEFAULT_MAX_RETRIES,
    DEFAULT_RETRY_DELAY_MS,
    DEFAULT_TIMEOUT_S,
    RuntimeSettings,
)

EXIT_SIGINT = 130  # 128 + SIGINT(2)
EXIT_SIGTERM = 143  # 128 + SIGTERM(15)

CommandName = Literal["list", "grep", "info", "call", "cache", "help", "version"]

EPILOG = f"""\
Output:
  stdout                   Tool results and data (default: text, --json for JSON)
  stderr                   Errors and diagnostics

Environment Variables:
  MCP_CONFIG_PATH          Path to config file (alternative to -c)
  MCP_DEBUG                Enable debug output
  MCP_TIMEOUT              Request timeout in seconds (default: {DEFAULT_TIMEOUT_S})
  MCP_CONCURRENCY          Max parallel server connections (default: {DEFAULT_CONCURRENCY})
  MCP_MAX_RETRIES          Max retry attempts for transient errors (default: {DEFAULT_MAX_RETRIES})
  MCP_RETRY_DELAY          Base retry delay in milliseconds (default: {DEFAULT_RETRY_DELAY_MS})
  MCP_CACHE_TTL            Tool list cache TTL in seconds (default: {DEFAULT_CACHE_TTL_S})
  MCP_NO_CACHE             Set to "true" to disable the tool list cache
  MCP_CACHE_DIR            Cache directory (default: ~/.cache/mcp-cli)
  MCP_STRICT_ENV           Set to "false" to warn on missing env vars (default: true)

Examples:
  mcp-cli                                    # List all servers
  mcp-cli -d                                 # List with descriptions
  mcp-cli grep "*file*"                      # Search for file tools
  mcp-cli filesystem                         # Show server tools
  mcp-cli filesystem/read_file               # Show tool schema
  mcp-cli filesystem/read_file '{{"path":"./README.md"}}'  # Call tool
  mcp-cli cache stats                        # Show cached tool lists

Config File:
  The CLI looks for mcp_servers.json in:
    1. Path specified by MCP_CONFIG_PATH or -c/--config
    2. ./mcp_servers.json (current directory)
    3. ~/.mcp_servers.json
    4. ~/.config/mcp/mcp_servers.json
"""


@dataclass(slots=True)
class ParsedArgs:
    command: CommandName
    target: str | None = None
    pattern: str | None = None
    args: str | None = None
    cache_action: str | None = None
    json: bool = False
    with_descriptions: bool = False
    config_path: str | None = None


class _ArgumentParser(argparse.ArgumentParser):
    """Reports usage errors as ``CommandError`` instead of exiting."""

    def error(self, message: str) -> Any:
        if message.startswith("unrecognized arguments:"):
            option = message.split(":", 1)[1].split()[0]
            raise CommandError(unknown_option_error(option))
        raise CommandError(usage_error(message))


def build_parser() -> argparse.ArgumentParser:
    parser = _ArgumentParser(
        prog="mcp-cli",
        description=f"mcp-cli v{__version__} - A lightweight CLI for MCP servers",
        usage=(
            "\n  mcp-cli [options]                           List all servers and tools"
            "\n  mcp-cli [options] grep <pattern>            Search tools by glob pattern"
            "\n  mcp-cli [options] <server>                  Show server tools and parameters"
            "\n  mcp-cli [options] <server>/<tool>           Show tool schema and description"
            "\n  mcp-cli [options] <server>/<tool> <json>    Call tool with arguments"
            "\n  mcp-cli cache stats | cache clear [server]  Manage the tool list cache"
        ),
        epilog=EPILOG,
        formatter_class=argparse.RawDescriptionHelpFormatter,
        add_help=False,
    )
    parser.add_argument("-h", "--help", action="store_true", help="Show this help message")
    parser.add_argument("-v", "--version", action="store_true", help="Show version number")
    parser.add_argument("-j", "--json", action="store_true", help="Output as JSON (for scripting)")
    parser.add_argument(
        "-d",
        "--with-descriptions",
        action="store_true",
        help="Include tool descriptions",
    )
    parser.add_argument("-c", "--config", metavar="<path>", help="Path to mcp_servers.json config file")
    parser.add_argument("positional", nargs="*", help=argparse.SUPPRESS)
    return parser


def parse_args(argv: Sequence[str]) -> ParsedArgs:
    """Map command-line arguments onto one command."""
    ns = build_parser().parse_intermixed_args(list(argv))
    base = {
        "json": ns.json,
        "with_descriptions": ns.with_descriptions,
        "config_path": ns.config,
    }
    if ns.help:
        return ParsedArgs(command="help", **base)
    if ns.version:
        return ParsedArgs(command="version", **base)

    positional: list[str] = ns.positional
    if not positional:
        return ParsedArgs(command="list", **base)

    head = positional[0]
    if head == "grep":
        if len(positional) < 2:
            raise CommandError(missing_argument_error("grep", "pattern"))
        return ParsedArgs(command="grep", pattern=positional[1], **base)

    if head == "cache":
        if len(positional) < 2:
            raise CommandError(missing_argument_error("cache", "action (stats or clear)"))
        action = positional[1]
        if action not in {"stats", "clear"}:
            raise CommandError(unknown_option_error(action))
        target = positional[2] if len(positional) > 2 else None
        return ParsedArgs(command="cache", cache_action=action, target=target, **base)

    if "/" in head:
        if len(positional) > 1:
            return ParsedArgs(
                command="call", target=head, args=" ".join(positional[1:]), **base
            )
        return ParsedArgs(command="info", target=head, **base)

    return ParsedArgs(command="info", target=head, **base)


def configure_logging(debug: bool, stream: TextIO) -> None:
    """Route ``mcp_cli`` logs to ``stream``; debug output only with MCP_DEBUG."""
    logger = logging.getLogger("mcp_cli")
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
    handler = logging.StreamHandler(stream)
    handler.setFormatter(logging.Formatter("[mcp-cli] %(message)s"))
    logger.addHandler(handler)
    logger.setLevel(logging.DEBUG if debug else logging.WARNING)


async def dispatch(args: ParsedArgs, ctx: CommandContext, stdin: TextIO | None) -> int:
    if args.command == "grep":
        return await grep_command(
            GrepOptions(
                pattern=args.pattern or "",
                with_descriptions=args.with_descriptions,
                json=args.json,
                config_path=args.config_path,
            ),
            ctx,
        )
    if args.command == "info":
        return await info_command(
            InfoOptions(
                target=args.target or "",
                json=args.json,
                with_descriptions=args.with_descriptions,
                config_path=args.config_path,
            ),
            ctx,
        )
    if args.command == "call":
        return await call_command(
            CallOptions(
                target=args.target or "",
                args=args.args,
                json=args.json,
                config_path=args.config_path,
                stdin=stdin,
            ),
            ctx,
        )
    if args.command == "cache":
        return await cache_command(
            CacheOptions(
                action="clear" if args.cache_action == "clear" else "stats",
                server=args.target,
                config_path=args.config_path,
            ),
            ctx,
        )
    return await list_command(
        ListOptions(
            with_descriptions=args.with_descriptions,
            json=args.json,
            config_path=args.config_path,
        ),
        ctx,
    )


def main(
    argv: Sequence[str] | None = None,
    *,
    connector: Connector | None = None,
    environ: Mapping[str, str] | None = None,
    stdin: TextIO | None = None,
    stdout: TextIO | None = None,
    stderr: TextIO | None = None,
) -> int:
    """Run one CLI invocation and return the exit status."""
    out = stdout if stdout is not None else sys.stdout
    err = stderr if stderr is not None else sys.stderr
    settings = RuntimeSettings.from_env(environ)
    configure_logging(settings.debug, err)

    try:
        args = parse_args(sys.argv[1:] if argv is None else argv)
        if args.command == "help":
            print(build_parser().format_help(), file=out)
            return 0
        if args.command == "version":
            print(f"mcp-cli v{__version__}", file=out)
            return 0

        ctx = CommandContext.create(
            settings,
            connector or SdkConnector(),
            out=out,
            err=err,
        )
        return asyncio.run(
            dispatch(args, ctx, stdin if stdin is not None else sys.stdin)
        )
    except MCPCliError as e:
        print(e.error.format(), file=err)
        return e.exit_code
    except KeyboardInterrupt:
        return EXIT_SIGINT


def _exit_on_sigterm(signum: int, frame: Any) -> None:
    _ = signum
    _ = frame
    raise SystemExit(EXIT_SIGTERM)


def run() -> None:
    """Console script entry point."""
    signal.signal(signal.SIGTERM, _exit_on_sigterm)
    try:
        code = main()
    except KeyboardInterrupt:
        code = EXIT_SIGINT
    except Exception as e:  # noqa: BLE001
        print(str(e), file=sys.stderr)
        code = int(ErrorCode.CLIENT_ERROR)
    sys.exit(code)
