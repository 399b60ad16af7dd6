from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path

from dotenv import load_dotenv

_TRUTHY = {"1", "true", "yes", "on"}


def _env_flag(name: str, default: bool) -> bool:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    return raw.strip().lower() in _TRUTHY


@dataclass(frozen=True)
class TmuxOptions:
    # Extra flags for `tmux split-window`, e.g. "-h -l 40%"
    options: str = "-h"
    focus: bool = False
    # allow-passthrough lets opencode emit OSC sequences (images, terminal
    # clipboards) but can leak escape codes such as "=31337;OK" into the
    # editor buffer.  Off unless asked for.
    allow_passthrough: bool = False


@dataclass(frozen=True)
class LspOptions:
    enabled: bool = True
    filetypes: tuple[str, ...] | None = None

    def attaches_to(self, language_id: str | None) -> bool:
        """Whether the server should serve a document of this language.

        ``filetypes=None`` means every document.
        """
        if self.filetypes is None:
            return True
        return language_id is not None and language_id in self.filetypes


@dataclass(frozen=True)
class Config:
    cmd: str = "opencode"
    provider: str = "tmux"
    lsp: LspOptions = field(default_factory=LspOptions)
    tmux: TmuxOptions = field(default_factory=TmuxOptions)
    control_port: int = 0

    @classmethod
    def from_env(cls, env_path: str | Path | None = None) -> Config:
        load_dotenv(env_path)

        raw_types = os.getenv("OPENCODE_LSP_FILETYPES", "")
        filetypes = tuple(ft.strip() for ft in raw_types.split(",") if ft.strip())

        return cls(
            cmd=os.getenv("OPENCODE_CMD", "opencode"),
            provider=os.getenv("OPENCODE_PROVIDER", "tmux"),
            lsp=LspOptions(
                enabled=_env_flag("OPENCODE_LSP_ENABLED", True),
                filetypes=filetypes or None,
            ),
            tmux=TmuxOptions(
                options=os.getenv("OPENCODE_TMUX_OPTIONS", "-h"),
                focus=_env_flag("OPENCODE_TMUX_FOCUS", False),
                allow_passthrough=_env_flag("OPENCODE_TMUX_ALLOW_PASSTHROUGH", False),
            ),
            control_port=int(os.getenv("OPENCODE_CONTROL_PORT", "0") or 0),
        )
