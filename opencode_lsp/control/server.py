"""MCP server exposing the opencode pane lifecycle as tools."""

from __future__ import annotations

import logging

import uvicorn
from mcp.server.fastmcp import FastMCP

from opencode_lsp.prompt import PromptBridge, TmuxPromptBridge
from opencode_lsp.provider import Provider

# Default port for the HTTP control surface
DEFAULT_PORT = 8911


class QuietDisconnects(logging.Filter):
    """Log client hang-ups in the MCP HTTP manager at DEBUG, without traceback.

    A client that drops the connection before its response is written makes
    the manager log an anyio ``ClosedResourceError`` at ERROR level.
    """

    def filter(self, record: logging.LogRecord) -> bool:
        exc = record.exc_info[1] if record.exc_info else None
        if exc is not None and "ClosedResourceError" in f"{type(exc).__name__} {exc}":
            record.levelno = logging.DEBUG
            record.levelname = logging.getLevelName(logging.DEBUG)
            record.msg = "MCP client disconnected mid-response"
            record.args = None
            record.exc_info = None
            record.exc_text = None
        return True


_quiet_disconnects = QuietDisconnects()


def agent_status(provider: Provider) -> dict:
    """Current state of the provider, never raising."""
    health = provider.health()
    if not health.ok:
        return {
            "provider": provider.name,
            "status": "unavailable",
            "error": health.message,
            "remediation": list(health.remediation),
        }
    pane_id = provider.get_pane_id()
    return {
        "provider": provider.name,
        "status": "running" if pane_id else "absent",
        "pane_id": pane_id,
    }


def create_server(
    provider: Provider,
    bridge: PromptBridge | None = None,
    port: int = DEFAULT_PORT,
) -> FastMCP:
    """Create and configure the MCP control server."""

    prompts = bridge or TmuxPromptBridge(provider)

    mcp = FastMCP(
        name="opencode-control",
        instructions=(
            "Controls the opencode agent running next to the editor. "
            "Use agent_status to see whether it is running, start_agent / "
            "stop_agent / toggle_agent to manage it, and send_prompt to "
            "hand it work."
        ),
        host="127.0.0.1",
        port=port,
        stateless_http=True,
    )

    def _lifecycle(action) -> dict:
        try:
            action()
            return agent_status(provider)
        except Exception as exc:
            return {"provider": provider.name, "status": "error", "error": str(exc)}

    # ------------------------------------------------------------------
    # Tool: agent_health
    # ------------------------------------------------------------------
    @mcp.tool()
    def agent_health() -> dict:
        """Check that the environment can host opencode.

        Returns ok=True, or the problem with ordered remediation steps.
        """
        health = provider.health()
        return {
            "ok": health.ok,
            "message": health.message,
            "remediation": list(health.remediation),
        }

    # ------------------------------------------------------------------
    # Tool: agent_status
    # ------------------------------------------------------------------
    @mcp.tool(name="agent_status")
    def status() -> dict:
        """Report whether opencode is running and in which pane."""
        return agent_status(provider)

    # ------------------------------------------------------------------
    # Lifecycle tools
    # ------------------------------------------------------------------
    @mcp.tool()
    def start_agent() -> dict:
        """Start opencode. Idempotent: a live pane is reused."""
        return _lifecycle(provider.start)

    @mcp.tool()
    def stop_agent() -> dict:
        """Stop opencode.

        Sends SIGTERM to the pane's process group, waits briefly, SIGKILLs
        whatever is left and closes the pane.  No-op when not running.
        """
        return _lifecycle(provider.stop)

    @mcp.tool()
    def toggle_agent() -> dict:
        """Start opencode if it is absent, stop it if it is running."""
        return _lifecycle(provider.toggle)

    # ------------------------------------------------------------------
    # Tool: send_prompt
    # ------------------------------------------------------------------
    @mcp.tool()
    async def send_prompt(text: str, submit: bool = False) -> dict:
        """Send a prompt to the running opencode.

        Args:
            text: The prompt text.
            submit: Run it immediately instead of leaving it in the input box.
        """
        try:
            await prompts.submit(text, submit=submit)
            return {"status": "sent", "submitted": submit}
        except Exception as exc:
            return {"status": "error", "error": str(exc)}

    return mcp


def http_server(mcp: FastMCP, port: int = DEFAULT_PORT) -> uvicorn.Server:
    """Wrap the MCP app in a uvicorn server bound to localhost.

    ``log_config=None`` routes uvicorn through the root logger so nothing is
    printed to stdout, which may be carrying the language server protocol.
    """
    # addFilter ignores a filter that is already installed
    logging.getLogger("mcp.server.streamable_http_manager").addFilter(_quiet_disconnects)

    config = uvicorn.Config(
        mcp.streamable_http_app(),
        host="127.0.0.1",
        port=port,
        log_config=None,
        access_log=False,
    )
    return uvicorn.Server(config)
