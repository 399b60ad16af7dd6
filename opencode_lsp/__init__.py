"""Drive opencode from the editor.

A tmux-hosted opencode process plus a tiny language server that turns
diagnostics into "Ask opencode to fix" code actions.
"""

from opencode_lsp.prompt import PromptBridge, PromptError, TmuxPromptBridge
from opencode_lsp.provider import Provider, ProviderError, TmuxProvider, create_provider
from opencode_lsp.server import EditorState, ProtocolShim

__all__ = [
    "EditorState",
    "PromptBridge",
    "PromptError",
    "ProtocolShim",
    "Provider",
    "ProviderError",
    "TmuxPromptBridge",
    "TmuxProvider",
    "create_provider",
]
