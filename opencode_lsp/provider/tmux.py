"""Run opencode in a tmux pane next to the editor."""

from __future__ import annotations

import logging
import signal
import time

from ..config import Config, TmuxOptions
from .base import Health, Provider, ProviderError
from .shell import TmuxShell

log = logging.getLogger(__name__)

# Time opencode gets to handle SIGTERM before survivors are SIGKILLed
KILL_GRACE_SECONDS = 0.2


class TmuxProvider(Provider):
    """Owns one tmux pane and the process tree running inside it.

    The pane id is only a hint: tmux is asked whether it still exists
    before every use, and the id is dropped once tmux says it is gone.
    """

    name = "tmux"

    def __init__(
        self,
        cmd: str,
        opts: TmuxOptions | None = None,
        shell: TmuxShell | None = None,
    ) -> None:
        self.cmd = cmd
        self.opts = opts or TmuxOptions()
        self.shell = shell or TmuxShell()
        self.pane_id: str | None = None

    @classmethod
    def from_config(cls, config: Config) -> TmuxProvider:
        return cls(config.cmd, config.tmux)

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def health(self) -> Health:
        if not self.shell.executable_available():
            return Health(
                "`tmux` executable not found in `$PATH`.",
                ("Install `tmux` and ensure it's in your `$PATH`.",),
            )
        if not self.shell.in_session():
            return Health(
                "Not running in a `tmux` session.",
                ("Launch your editor inside a `tmux` session.",),
            )
        return Health()

    def get_pane_id(self) -> str | None:
        """Return the pane where we started opencode, if it still exists."""
        health = self.health()
        if not health.ok:
            raise ProviderError.from_health(health)

        if self.pane_id and self.pane_id not in self.shell.list_panes(self.pane_id):
            log.info("opencode pane %s is gone", self.pane_id)
            self.pane_id = None

        return self.pane_id

    def start(self) -> None:
        """Start opencode in a new pane. No-op if one is already live."""
        if self.get_pane_id():
            return

        pane_id = self.shell.split_window(
            self.cmd, options=self.opts.options, focus=self.opts.focus
        )
        if not pane_id:
            log.warning("tmux did not report a pane id for %r", self.cmd)
            return

        self.pane_id = pane_id
        log.info("Started opencode in tmux pane %s", pane_id)

        if not self.opts.allow_passthrough:
            self.shell.set_pane_option(pane_id, "allow-passthrough", "off")

    def stop(self) -> None:
        """Terminate the pane's process group, then kill the pane itself."""
        pane_id = self.get_pane_id()
        if not pane_id:
            return

        pane_pid = self.shell.pane_pid(pane_id)
        if pane_pid is not None:
            members = [pid for pid in self.shell.process_group(pane_pid) if pid != pane_pid]
            self._kill_processes(members)

        self.shell.kill_pane(pane_id)
        self.pane_id = None
        log.info("Stopped opencode pane %s", pane_id)

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    def _kill_processes(self, pids: list[int]) -> None:
        """SIGTERM every pid, wait the grace window, SIGKILL the survivors."""
        if not pids:
            return

        for pid in pids:
            self.shell.signal(pid, signal.SIGTERM)

        time.sleep(KILL_GRACE_SECONDS)

        survivors = [pid for pid in pids if self.shell.is_running(pid)]
        for pid in survivors:
            self.shell.signal(pid, signal.SIGKILL)
        if survivors:
            log.info("Force-killed %d process(es) that ignored SIGTERM", len(survivors))
