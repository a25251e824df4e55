# src/main.py — v1
"""CLI entry point — resolve, sites, serve commands.

Usage:
    wispview resolve <handle-or-did>
    wispview sites <handle-or-did>
    wispview serve [<handle-or-did>] [--site RKEY] [--host HOST] [--port PORT]
"""

from __future__ import annotations

import argparse
import asyncio
import logging
import sys

from wispview.version import __version__

logger = logging.getLogger(__name__)


def main(argv: list[str] | None = None) -> int:
    """Main CLI entry point."""
    parser = _build_parser()
    args = parser.parse_args(argv)

    _setup_logging(args.verbose)

    if not hasattr(args, "func"):
        parser.print_help()
        return 1

    try:
        return asyncio.run(args.func(args))
    except KeyboardInterrupt:
        logger.info("Interrupted by user")
        return 130
    except Exception as exc:
        logger.error("Fatal error: %s", exc, exc_info=args.verbose)
        return 1


def _build_parser() -> argparse.ArgumentParser:
    """Build CLI argument parser."""
    parser = argparse.ArgumentParser(
        prog="wispview",
        description=f"wispview v{__version__} — browse wisp.place static sites locally",
    )
    parser.add_argument(
        "--version", action="version", version=f"%(prog)s {__version__}",
    )
    parser.add_argument(
        "-v", "--verbose", action="store_true",
        help="Enable debug logging",
    )

    subparsers = parser.add_subparsers(dest="command")

    # --- resolve ---
    p_resolve = subparsers.add_parser(
        "resolve", help="Resolve a handle or DID to its DID and PDS",
    )
    p_resolve.add_argument("input", help="Handle, @handle or DID")
    p_resolve.set_defaults(func=_cmd_resolve)

    # --- sites ---
    p_sites = subparsers.add_parser(
        "sites", help="List the sites an account publishes",
    )
    p_sites.add_argument("input", help="Handle, @handle or DID")
    p_sites.set_defaults(func=_cmd_sites)

    # --- serve ---
    p_serve = subparsers.add_parser(
        "serve", help="Load a site and serve it over HTTP",
    )
    p_serve.add_argument(
        "input", nargs="?", default=None,
        help="Handle, @handle or DID (omit to serve the persisted site)",
    )
    p_serve.add_argument(
        "--site", default=None,
        help="Site record key (default: first site)",
    )
    p_serve.add_argument("--host", default=None, help="Bind address")
    p_serve.add_argument("--port", type=int, default=None, help="Bind port")
    p_serve.set_defaults(func=_cmd_serve)

    return parser


async def _cmd_resolve(args: argparse.Namespace) -> int:
    """Print the resolution chain result."""
    from wispview.server.runtime import SiteRuntime

    runtime = SiteRuntime.create(_load_settings(args, cache_backend="memory"))
    try:
        result = await runtime.resolver.resolve(args.input)
    finally:
        await runtime.aclose()

    print(f"\nResolved {args.input}:")
    print(f"  Handle: {result.handle or '-'}")
    print(f"  DID:    {result.did}")
    print(f"  PDS:    {result.pds_url}")
    return 0


async def _cmd_sites(args: argparse.Namespace) -> int:
    """List site records."""
    from wispview.api.facade import list_sites
    from wispview.server.runtime import SiteRuntime

    runtime = SiteRuntime.create(_load_settings(args, cache_backend="memory"))
    try:
        sites = await list_sites(runtime, args.input)
    finally:
        await runtime.aclose()

    if not sites:
        print(f"No wisp sites found for {args.input}")
        return 1

    print(f"\nSites for {args.input}:")
    for site in sites:
        files = f"{site.file_count} files" if site.file_count is not None else "? files"
        print(f"  {site.rkey:24s} {site.site:24s} {files}")
    return 0


async def _cmd_serve(args: argparse.Namespace) -> int:
    """Load a site (optional) and run the HTTP server until interrupted."""
    import uvicorn

    from wispview.api.app import create_app
    from wispview.api.facade import load_site
    from wispview.server.runtime import SiteRuntime

    overrides: dict[str, object] = {}
    if args.host:
        overrides["server_host"] = args.host
    if args.port:
        overrides["server_port"] = args.port
    settings = _load_settings(args, **overrides)
    runtime = SiteRuntime.create(settings)

    try:
        if args.input:
            loaded = await load_site(runtime, args.input, args.site)
            print(f"\nServing {loaded.site_name} ({loaded.did})")
            print(f"  http://{settings.server_host}:{settings.server_port}{loaded.base_path}")
        elif not await runtime.session.rehydrate():
            logger.warning("No persisted site; load one with POST /_wisp/load")

        app = create_app(settings, runtime)
        config = uvicorn.Config(
            app,
            host=settings.server_host,
            port=settings.server_port,
            log_level="warning",
        )
        await uvicorn.Server(config).serve()
    finally:
        await runtime.aclose()
    return 0


def _load_settings(args: argparse.Namespace, **overrides: object):
    """Settings from .env, with -v forcing DEBUG and re-applying logging config."""
    from wispview.config.settings import load_settings
    from wispview.logging.logger import setup_logging

    if args.verbose:
        overrides["log_level"] = "DEBUG"
    settings = load_settings(**overrides)
    setup_logging(
        level=settings.log_level,
        log_format=settings.log_format,
        log_file=settings.log_file,
        rotation=settings.log_rotation,
        retention=settings.log_retention,
    )
    return settings


def _setup_logging(verbose: bool) -> None:
    """Configure logging for CLI usage."""
    level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(
        level=level,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%H:%M:%S",
        stream=sys.stderr,
    )
    # Quiet noisy libraries
    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("httpcore").setLevel(logging.WARNING)


if __name__ == "__main__":
    sys.exit(main())
