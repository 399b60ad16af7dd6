"""Render diagnostics into the text opencode sees in a prompt.

References use opencode's ``@path`` file-mention syntax so the agent
attaches the file to its context.
"""

from __future__ import annotations

import os
from pathlib import Path
from urllib.parse import unquote, urlparse

from .models import Diagnostic, Severity


def uri_to_path(uri: str) -> str:
    """Turn a ``file://`` URI into a filesystem path; other strings pass through."""
    parsed = urlparse(uri)
    if parsed.scheme != "file":
        return uri
    return unquote(parsed.path)


def format_location(diagnostic: Diagnostic, root: str | Path | None = None) -> str:
    """Return ``@<path>`` for the diagnostic's document.

    Paths under ``root`` (default: the working directory) are made relative.
    """
    path = uri_to_path(diagnostic.uri)
    base = Path(root) if root is not None else Path(os.getcwd())
    try:
        path = str(Path(path).relative_to(base))
    except ValueError:
        pass
    return f"@{path}"


def format_diagnostic(diagnostic: Diagnostic) -> str:
    """Describe a diagnostic, e.g. `` L6:C3 [WARNING] unused variable (pyflakes)``."""
    severity = Severity(diagnostic.severity).name
    text = (
        f" L{diagnostic.line + 1}:C{diagnostic.character + 1}"
        f" [{severity}] {diagnostic.message}"
    )
    if diagnostic.source:
        text += f" ({diagnostic.source})"
    return text
