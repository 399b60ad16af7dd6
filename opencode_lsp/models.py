from __future__ import annotations

import enum
from dataclasses import dataclass, field
from typing import Any

FIX_COMMAND = "opencode.fix"
SERVER_NAME = "opencode"

# JSON-RPC error codes used by the shim
METHOD_NOT_FOUND = -32601
SERVER_ERROR = -32000


class Severity(enum.IntEnum):
    ERROR = 1
    WARNING = 2
    INFORMATION = 3
    HINT = 4


# ---------------------------------------------------------------------------
# Diagnostics: produced by the editor, only read here
# ---------------------------------------------------------------------------

@dataclass
class Diagnostic:
    uri: str
    line: int                    # zero-based, as the editor reports it
    message: str
    severity: Severity = Severity.ERROR
    character: int = 0
    source: str | None = None
    code: str | int | None = None

    @classmethod
    def from_lsp(cls, uri: str, raw: dict[str, Any]) -> Diagnostic:
        """Build from an LSP ``Diagnostic`` object as sent in codeAction context.

        The result is what travels back to the editor as the fix command's
        argument, so the editor sees this flat shape (``uri``, ``line``,
        ``character``, ...) there rather than the LSP object it sent.
        ``range.end``, ``tags`` and ``relatedInformation`` are dropped; the
        prompt only needs the start position.
        """
        start = raw.get("range", {}).get("start", {})
        return cls(
            uri=uri,
            line=int(start.get("line", 0)),
            character=int(start.get("character", 0)),
            message=str(raw.get("message", "")),
            severity=Severity(raw.get("severity") or Severity.ERROR),
            source=raw.get("source"),
            code=raw.get("code"),
        )

    @classmethod
    def coerce(cls, value: Diagnostic | dict[str, Any]) -> Diagnostic:
        """Accept a Diagnostic or its serialized (``asdict``) form.

        Command arguments come back from the editor as plain JSON, so the
        fix command has to rebuild the dataclass from a dict.
        """
        if isinstance(value, cls):
            return value
        if not isinstance(value, dict):
            raise TypeError(f"Expected a diagnostic, got {type(value).__name__}")
        return cls(
            uri=str(value.get("uri", "")),
            line=int(value.get("line", 0)),
            message=str(value.get("message", "")),
            severity=Severity(value.get("severity") or Severity.ERROR),
            character=int(value.get("character", 0)),
            source=value.get("source"),
            code=value.get("code"),
        )


# ---------------------------------------------------------------------------
# Code actions
# ---------------------------------------------------------------------------

@dataclass
class Command:
    command: str
    arguments: list[Any] = field(default_factory=list)


@dataclass
class CodeAction:
    title: str
    command: Command


@dataclass(frozen=True)
class ResponseError:
    code: int
    message: str

    def to_dict(self) -> dict[str, Any]:
        return {"code": self.code, "message": self.message}
