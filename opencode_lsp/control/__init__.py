"""MCP control surface for the opencode agent.

Exposes six MCP tools:
  - agent_health:  Check the environment can host opencode
  - agent_status:  Whether opencode is running, and where
  - start_agent / stop_agent / toggle_agent:  Pane lifecycle
  - send_prompt:   Hand opencode a prompt

Can run standalone:
    python -m opencode_lsp.control
"""

from opencode_lsp.control.server import DEFAULT_PORT, create_server, http_server

__all__ = ["DEFAULT_PORT", "create_server", "http_server"]
