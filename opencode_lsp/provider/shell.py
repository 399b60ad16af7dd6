"""Thin wrappers over the tmux CLI and the OS process table.

Nothing here raises on a failed call: a non-zero exit or empty output is
reported as "no data" (empty list, None or False) and the caller decides
what that means.
"""

from __future__ import annotations

import logging
import os
import shlex
import shutil
import subprocess

log = logging.getLogger(__name__)


def _run(cmd: list[str], *, input: str | None = None) -> tuple[int, str, str]:
    try:
        p = subprocess.run(
            cmd,
            input=input,
            capture_output=True,
            text=True,
            check=False,
        )
    except FileNotFoundError:
        return 127, "", f"{cmd[0]} not found"
    return p.returncode, (p.stdout or ""), (p.stderr or "")


class TmuxShell:
    """Process-control operations the tmux provider orchestrates."""

    def _run_tmux(self, args: list[str], *, input: str | None = None) -> tuple[int, str, str]:
        code, out, err = _run(["tmux", *args], input=input)
        if code != 0:
            log.debug("tmux %s exited %d: %s", args[0], code, err.strip())
        return code, out, err

    # -- environment -----------------------------------------------------

    def executable_available(self) -> bool:
        return shutil.which("tmux") is not None

    def in_session(self) -> bool:
        return bool(os.environ.get("TMUX"))

    # -- panes -----------------------------------------------------------

    def list_panes(self, target: str) -> list[str]:
        code, out, _ = self._run_tmux(["list-panes", "-t", target, "-F", "#{pane_id}"])
        if code != 0:
            return []
        return [ln.strip() for ln in out.splitlines() if ln.strip()]

    def split_window(self, command: str, *, options: str = "", focus: bool = False) -> str | None:
        args = ["split-window"]
        if not focus:
            args.append("-d")
        args += ["-P", "-F", "#{pane_id}", *shlex.split(options or ""), command]
        code, out, _ = self._run_tmux(args)
        pane_id = out.strip()
        if code != 0 or not pane_id:
            return None
        return pane_id

    def set_pane_option(self, pane_id: str, name: str, value: str) -> bool:
        code, _, _ = self._run_tmux(["set-option", "-t", pane_id, "-p", name, value])
        return code == 0

    def pane_pid(self, pane_id: str) -> int | None:
        code, out, _ = self._run_tmux(["display-message", "-t", pane_id, "-p", "#{pane_pid}"])
        try:
            return int(out.strip()) if code == 0 else None
        except ValueError:
            return None

    def kill_pane(self, pane_id: str) -> bool:
        code, _, _ = self._run_tmux(["kill-pane", "-t", pane_id])
        return code == 0

    # -- processes -------------------------------------------------------

    def process_group(self, pid: int) -> list[int]:
        """All pids sharing the process group of ``pid``, ``pid`` included."""
        try:
            pgid = os.getpgid(pid)
        except (ProcessLookupError, PermissionError, OSError):
            return []

        code, out, _ = _run(["ps", "-eo", "pid=,pgid="])
        if code != 0:
            return []

        pids: list[int] = []
        for line in out.splitlines():
            parts = line.split()
            if len(parts) != 2:
                continue
            try:
                member, member_pgid = int(parts[0]), int(parts[1])
            except ValueError:
                continue
            if member_pgid == pgid:
                pids.append(member)
        return pids

    def signal(self, pid: int, sig: int) -> bool:
        try:
            os.kill(pid, sig)
        except (ProcessLookupError, PermissionError):
            return False
        return True

    def is_running(self, pid: int) -> bool:
        code, out, _ = _run(["ps", "-p", str(pid), "-o", "stat="])
        state = out.strip()
        if code != 0 or not state:
            return False
        # A zombie has exited; it is only waiting for its parent to reap it.
        return not state.startswith("Z")
