"""Run the opencode control surface as an MCP daemon over HTTP.

Usage:
    python -m opencode_lsp.control [--port PORT] [--env-file FILE]

The daemon owns its own opencode pane and closes it on SIGINT/SIGTERM.
"""

import argparse
import asyncio
import logging
import signal
from pathlib import Path

from opencode_lsp.config import Config
from opencode_lsp.control.server import DEFAULT_PORT, create_server, http_server
from opencode_lsp.provider import Provider, ProviderError, create_provider

log = logging.getLogger(__name__)


async def _run(port: int, provider: Provider) -> None:
    uvi = http_server(create_server(provider=provider, port=port), port)

    stop_requested = asyncio.Event()
    loop = asyncio.get_running_loop()
    for sig in (signal.SIGINT, signal.SIGTERM):
        loop.add_signal_handler(sig, stop_requested.set)

    # uvicorn's serve() would install its own signal handlers over ours
    serving = asyncio.create_task(uvi._serve())
    waiting = asyncio.create_task(stop_requested.wait())
    try:
        await asyncio.wait({serving, waiting}, return_when=asyncio.FIRST_COMPLETED)
        if stop_requested.is_set():
            log.info("Stop requested")
        uvi.should_exit = True
        await serving
    finally:
        waiting.cancel()
        try:
            provider.stop()
        except ProviderError as exc:
            log.warning("Could not stop opencode: %s", exc)


def main() -> None:
    parser = argparse.ArgumentParser(description="opencode MCP control daemon")
    parser.add_argument(
        "--port", type=int, default=None,
        help=f"Port to listen on (default: $OPENCODE_CONTROL_PORT or {DEFAULT_PORT})",
    )
    parser.add_argument(
        "--env-file", type=Path, default=None,
        help="Load settings from this .env file",
    )
    args = parser.parse_args()

    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s %(levelname)-8s %(name)s: %(message)s",
    )

    config = Config.from_env(args.env_file)
    port = args.port or config.control_port or DEFAULT_PORT
    provider = create_provider(config)

    log.info("opencode control listening on http://127.0.0.1:%d/mcp", port)
    asyncio.run(_run(port, provider))


if __name__ == "__main__":
    main()
