"""JSON-RPC over stdio with LSP ``Content-Length`` framing."""

from __future__ import annotations

import asyncio
import dataclasses
import enum
import json
import logging
import sys
from collections.abc import Callable
from typing import Any

from .models import Diagnostic, ResponseError
from .server import EditorState, ProtocolShim

log = logging.getLogger(__name__)


def _to_json(obj: Any) -> Any:
    if dataclasses.is_dataclass(obj) and not isinstance(obj, type):
        return dataclasses.asdict(obj)
    if isinstance(obj, enum.Enum):
        return obj.value
    raise TypeError(f"Object of type {type(obj).__name__} is not JSON serializable")


def _object(value: Any) -> dict[str, Any]:
    """``value`` if it is a JSON object, else an empty one."""
    return value if isinstance(value, dict) else {}


def encode_message(payload: dict[str, Any]) -> bytes:
    body = json.dumps(payload, default=_to_json).encode("utf-8")
    return f"Content-Length: {len(body)}\r\n\r\n".encode("ascii") + body


async def read_message(reader: asyncio.StreamReader) -> dict[str, Any] | None:
    """Read one framed message; None at end of stream.

    Raises ValueError (json.JSONDecodeError included) for a bad header or body.
    """
    content_length: int | None = None
    while True:
        line = await reader.readline()
        if not line:
            return None
        line = line.strip()
        if not line:
            break
        name, _, value = line.decode("ascii", errors="replace").partition(":")
        if name.strip().lower() == "content-length":
            content_length = int(value.strip())

    if content_length is None:
        raise ValueError("Message without Content-Length header")

    try:
        body = await reader.readexactly(content_length)
    except asyncio.IncompleteReadError:
        return None
    return json.loads(body.decode("utf-8"))


class StdioServer:
    """Feeds framed messages to a ProtocolShim and writes its replies."""

    def __init__(
        self,
        shim: ProtocolShim,
        state: EditorState,
        write: Callable[[bytes], None],
    ) -> None:
        self.shim = shim
        self.state = state
        self._write = write
        self.shutdown_requested = False

    def send(self, payload: dict[str, Any]) -> None:
        self._write(encode_message({"jsonrpc": "2.0", **payload}))

    def _reply(self, msg_id: Any) -> Callable[[ResponseError | None, Any], None]:
        def callback(error: ResponseError | None, result: Any) -> None:
            if error is not None:
                self.send({"id": msg_id, "error": error.to_dict()})
            else:
                self.send({"id": msg_id, "result": result})
        return callback

    def handle(self, message: dict[str, Any]) -> bool:
        """Process one message. Returns False once the client sent ``exit``."""
        method = message.get("method")
        params = _object(message.get("params"))
        if not isinstance(method, str):
            # A response to something we never send, or junk
            return True

        if "id" in message:
            if method == "shutdown":
                self.shutdown_requested = True
                self.send({"id": message["id"], "result": None})
                return True
            if method == "textDocument/codeAction":
                self._record_diagnostics(params)
            self.shim.request(method, params, self._reply(message["id"]))
            return True

        if method == "exit":
            self.shim.terminate()
            return False
        doc = _object(params.get("textDocument"))
        if method == "textDocument/didOpen":
            self.state.open_document(str(doc.get("uri", "")), str(doc.get("languageId", "")))
        elif method == "textDocument/didClose":
            self.state.close_document(str(doc.get("uri", "")))
        self.shim.notify(method, params)
        return True

    def _record_diagnostics(self, params: dict[str, Any]) -> None:
        """Replace the document's diagnostics with the ones in the request.

        Entries that can't be read are dropped; the rest are kept.
        """
        uri = _object(params.get("textDocument")).get("uri")
        raw = _object(params.get("context")).get("diagnostics")
        if not uri or not isinstance(uri, str) or raw is None:
            return
        if not isinstance(raw, list):
            log.warning("Ignoring non-list diagnostics for %s", uri)
            raw = []

        diagnostics = []
        for entry in raw:
            try:
                diagnostics.append(Diagnostic.from_lsp(uri, entry))
            except (TypeError, ValueError, AttributeError) as exc:
                log.warning("Dropping malformed diagnostic for %s: %s", uri, exc)
        self.state.set_diagnostics(uri, diagnostics)

    async def serve(self, reader: asyncio.StreamReader) -> None:
        while True:
            try:
                message = await read_message(reader)
            except ValueError as exc:
                log.warning("Skipping malformed message: %s", exc)
                continue
            if message is None:
                log.info("Client closed the stream")
                return
            if not isinstance(message, dict):
                log.warning("Skipping non-object message: %r", message)
                continue
            if not self.handle(message):
                return


async def serve_stdio(shim: ProtocolShim, state: EditorState) -> None:
    loop = asyncio.get_running_loop()
    reader = asyncio.StreamReader()
    await loop.connect_read_pipe(lambda: asyncio.StreamReaderProtocol(reader), sys.stdin)

    def write(data: bytes) -> None:
        sys.stdout.buffer.write(data)
        sys.stdout.buffer.flush()

    await StdioServer(shim, state, write).serve(reader)
