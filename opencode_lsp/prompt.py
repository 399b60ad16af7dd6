"""Deliver prompts to the running opencode TUI."""

from __future__ import annotations

import asyncio
import logging
import uuid
from abc import ABC, abstractmethod
from collections.abc import Awaitable, Callable

from .provider import Provider, ProviderError

log = logging.getLogger(__name__)

TmuxRunner = Callable[..., Awaitable[tuple[int, str, str]]]


class PromptError(RuntimeError):
    pass


async def run_tmux(*args: str, input: str | None = None) -> tuple[int, str, str]:
    """Run ``tmux <args>`` without blocking the event loop."""
    try:
        proc = await asyncio.create_subprocess_exec(
            "tmux",
            *args,
            stdin=asyncio.subprocess.PIPE if input is not None else asyncio.subprocess.DEVNULL,
            stdout=asyncio.subprocess.PIPE,
            stderr=asyncio.subprocess.PIPE,
        )
    except FileNotFoundError:
        return 127, "", "tmux not found"

    stdout, stderr = await proc.communicate(input.encode("utf-8") if input is not None else None)
    return (
        proc.returncode or 0,
        stdout.decode("utf-8", errors="replace"),
        stderr.decode("utf-8", errors="replace"),
    )


class PromptBridge(ABC):
    @abstractmethod
    def submit(self, text: str, *, submit: bool = False) -> asyncio.Future[None]:
        """Send ``text`` to opencode.

        Returns at once; the future resolves to None once opencode has the
        prompt, or fails with PromptError.  ``submit=True`` runs the prompt
        immediately instead of leaving it in the input for the user to edit.
        """
        ...


class TmuxPromptBridge(PromptBridge):
    """Paste prompts into the pane the provider is running opencode in."""

    def __init__(self, provider: Provider, runner: TmuxRunner = run_tmux) -> None:
        self.provider = provider
        self._runner = runner

    def submit(self, text: str, *, submit: bool = False) -> asyncio.Future[None]:
        return asyncio.ensure_future(self._deliver(text, submit))

    async def _deliver(self, text: str, submit: bool) -> None:
        try:
            pane_id = self.provider.get_pane_id()
        except ProviderError as exc:
            raise PromptError(str(exc)) from exc
        if not pane_id:
            raise PromptError("opencode is not running")

        buffer = f"opencode-{uuid.uuid4().hex[:8]}"
        await self._tmux("load-buffer", "-b", buffer, "-", input=text)
        # -p: bracketed paste so newlines don't submit early; -d: drop the buffer
        await self._tmux("paste-buffer", "-p", "-d", "-t", pane_id, "-b", buffer)
        if submit:
            await self._tmux("send-keys", "-t", pane_id, "Enter")

        log.info("Sent %d-char prompt to pane %s (submit=%s)", len(text), pane_id, submit)

    async def _tmux(self, *args: str, input: str | None = None) -> None:
        code, _, err = await self._runner(*args, input=input)
        if code != 0:
            raise PromptError(err.strip() or f"tmux {args[0]} failed with exit code {code}")
