"""Run the opencode language server on stdio.

Usage:
    python -m opencode_lsp [--env-file FILE] [--control-port PORT]

With a control port (flag or $OPENCODE_CONTROL_PORT) the MCP control
surface is served from the same process, so both share one opencode pane.
"""

import argparse
import asyncio
import contextlib
import logging
from pathlib import Path

from .config import Config
from .control import create_server, http_server
from .prompt import TmuxPromptBridge
from .provider import create_provider
from .server import EditorState, ProtocolShim
from .transport import serve_stdio

log = logging.getLogger(__name__)


async def _run(config: Config, control_port: int) -> None:
    provider = create_provider(config)
    bridge = TmuxPromptBridge(provider)
    state = EditorState()
    shim = ProtocolShim(state, bridge, config.lsp)

    control_task = None
    uvi = None
    if control_port:
        uvi = http_server(create_server(provider, bridge, control_port), control_port)
        # _serve() leaves signal handling to the editor that spawned us
        control_task = asyncio.create_task(uvi._serve())
        log.info("Control surface on http://127.0.0.1:%d/mcp", control_port)

    try:
        await serve_stdio(shim, state)
    finally:
        if uvi is not None and control_task is not None:
            uvi.should_exit = True
            with contextlib.suppress(asyncio.CancelledError):
                await control_task


def main() -> None:
    parser = argparse.ArgumentParser(description="opencode language server (stdio)")
    parser.add_argument(
        "--env-file", type=Path, default=None,
        help="Load settings from this .env file",
    )
    parser.add_argument(
        "--control-port", type=int, default=None,
        help="Also serve the MCP control surface on this port (0 disables)",
    )
    args = parser.parse_args()

    # stdout carries the protocol; everything else goes to stderr
    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s %(levelname)-8s %(name)s: %(message)s",
    )

    config = Config.from_env(args.env_file)
    if not config.lsp.enabled:
        log.info("opencode language server is disabled (OPENCODE_LSP_ENABLED)")
        return

    control_port = config.control_port if args.control_port is None else args.control_port
    asyncio.run(_run(config, control_port))


if __name__ == "__main__":
    main()
