"""In-process language server that offers "ask opencode to fix" code actions.

It implements just enough of LSP to proxy one command: ``initialize``,
``textDocument/codeAction`` and ``workspace/executeCommand``.  Each handler
takes ``(params, callback)`` and must call ``callback(error, result)``
exactly once, possibly long after it returned.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Callable
from typing import Any

from .config import LspOptions
from .context import format_diagnostic, format_location
from .models import (
    FIX_COMMAND,
    METHOD_NOT_FOUND,
    SERVER_ERROR,
    SERVER_NAME,
    CodeAction,
    Command,
    Diagnostic,
    ResponseError,
)
from .prompt import PromptBridge

log = logging.getLogger(__name__)

ResponseCallback = Callable[[ResponseError | None, Any], None]
Handler = Callable[[dict[str, Any], ResponseCallback], None]


class EditorState:
    """Documents and diagnostics as the editor last reported them."""

    def __init__(self) -> None:
        self._languages: dict[str, str] = {}
        self._diagnostics: dict[str, list[Diagnostic]] = {}

    def open_document(self, uri: str, language_id: str) -> None:
        self._languages[uri] = language_id

    def close_document(self, uri: str) -> None:
        self._languages.pop(uri, None)
        self._diagnostics.pop(uri, None)

    def language_of(self, uri: str) -> str | None:
        return self._languages.get(uri)

    def set_diagnostics(self, uri: str, diagnostics: list[Diagnostic]) -> None:
        self._diagnostics[uri] = list(diagnostics)

    def diagnostics_at(self, uri: str, line: int) -> list[Diagnostic]:
        return [d for d in self._diagnostics.get(uri, []) if d.line == line]


class _Once:
    """Forward only the first resolution of a request callback."""

    def __init__(self, method: str, callback: ResponseCallback) -> None:
        self.method = method
        self._callback = callback
        self.fired = False

    def __call__(self, error: ResponseError | None, result: Any) -> None:
        if self.fired:
            log.warning("Dropping second response to %s", self.method)
            return
        self.fired = True
        self._callback(error, result)


class ProtocolShim:
    def __init__(
        self,
        state: EditorState,
        bridge: PromptBridge,
        options: LspOptions | None = None,
    ) -> None:
        self.state = state
        self.bridge = bridge
        self.options = options or LspOptions()
        self.handlers: dict[str, Handler] = {
            "initialize": self._initialize,
            "textDocument/codeAction": self._code_action,
            "workspace/executeCommand": self._execute_command,
        }

    # ------------------------------------------------------------------
    # Transport contract
    # ------------------------------------------------------------------

    def request(self, method: str, params: dict[str, Any] | None, callback: ResponseCallback) -> bool:
        """Dispatch a request. Unknown methods are ignored and get no reply.

        Returns whether a handler took the request.
        """
        handler = self.handlers.get(method)
        if handler is None:
            log.debug("Ignoring unhandled method %s", method)
            return False
        once = _Once(method, callback)
        try:
            handler(params or {}, once)
        except Exception as exc:
            log.exception("Handler for %s failed", method)
            if not once.fired:
                once(ResponseError(SERVER_ERROR, str(exc)), None)
        return True

    def notify(self, method: str, params: dict[str, Any] | None) -> None:
        pass

    def is_closing(self) -> bool:
        # FIX: disabling the server never detaches it from open documents.
        # The editor asks whether we are closing but never sends terminate,
        # so there is no point where a detach could happen.
        return False

    def terminate(self) -> None:
        pass

    # ------------------------------------------------------------------
    # Handlers
    # ------------------------------------------------------------------

    def _initialize(self, params: dict[str, Any], callback: ResponseCallback) -> None:
        callback(None, {
            "capabilities": {
                "codeActionProvider": True,
                "executeCommandProvider": {
                    "commands": [FIX_COMMAND],
                },
            },
            "serverInfo": {
                "name": SERVER_NAME,
            },
        })

    def _code_action(self, params: dict[str, Any], callback: ResponseCallback) -> None:
        uri = (params.get("textDocument") or {}).get("uri", "")
        line = params["range"]["start"]["line"]

        if not self.options.attaches_to(self.state.language_of(uri)):
            callback(None, [])
            return

        actions = [
            CodeAction(
                title=f"Ask opencode to fix: {diagnostic.message}",
                command=Command(command=FIX_COMMAND, arguments=[diagnostic]),
            )
            for diagnostic in self.state.diagnostics_at(uri, line)
        ]
        callback(None, actions)

    def _execute_command(self, params: dict[str, Any], callback: ResponseCallback) -> None:
        command = params.get("command")
        if command != FIX_COMMAND:
            callback(ResponseError(METHOD_NOT_FOUND, f"Unknown command: {command}"), None)
            return

        def _failed(reason: str) -> None:
            callback(ResponseError(SERVER_ERROR, f"Failed to fix: {reason}"), None)

        try:
            diagnostic = Diagnostic.coerce(params["arguments"][0])
            prompt = "Fix diagnostic: " + format_location(diagnostic) + format_diagnostic(diagnostic)
            pending = self.bridge.submit(prompt, submit=True)
        except Exception as exc:
            log.exception("Could not send fix prompt")
            _failed(str(exc))
            return

        def _on_done(fut: asyncio.Future[None]) -> None:
            if fut.cancelled():
                _failed("cancelled")
            elif fut.exception() is not None:
                _failed(str(fut.exception()))
            else:
                callback(None, None)

        pending.add_done_callback(_on_done)
