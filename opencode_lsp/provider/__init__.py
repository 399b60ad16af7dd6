"""Backends that host the opencode process.

Pick one by name with ``create_provider(config)``.
"""

from __future__ import annotations

from ..config import Config
from .base import Health, Provider, ProviderError
from .tmux import TmuxProvider

PROVIDERS: dict[str, type[Provider]] = {
    TmuxProvider.name: TmuxProvider,
}


def create_provider(config: Config) -> Provider:
    cls = PROVIDERS.get(config.provider)
    if cls is None:
        known = ", ".join(sorted(PROVIDERS))
        raise ValueError(f"Unknown provider '{config.provider}' (known: {known})")
    return cls.from_config(config)


__all__ = [
    "Health",
    "Provider",
    "ProviderError",
    "PROVIDERS",
    "TmuxProvider",
    "create_provider",
]
