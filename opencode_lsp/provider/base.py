from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass

from ..config import Config


@dataclass(frozen=True)
class Health:
    """Outcome of an environment check.

    ``message`` is None when healthy; otherwise it explains the problem and
    ``remediation`` lists the steps to fix it, in order.
    """

    message: str | None = None
    remediation: tuple[str, ...] = ()

    @property
    def ok(self) -> bool:
        return self.message is None


class ProviderError(RuntimeError):
    def __init__(self, message: str, remediation: tuple[str, ...] = ()) -> None:
        self.message = message
        self.remediation = remediation
        text = message
        if remediation:
            text += " " + " ".join(remediation)
        super().__init__(text)

    @classmethod
    def from_health(cls, health: Health) -> ProviderError:
        return cls(health.message or "Provider is unhealthy", health.remediation)


class Provider(ABC):
    """A backend that hosts the opencode process somewhere the user can see it."""

    name: str

    @classmethod
    @abstractmethod
    def from_config(cls, config: Config) -> Provider:
        ...

    @abstractmethod
    def health(self) -> Health:
        ...

    @abstractmethod
    def get_pane_id(self) -> str | None:
        """Return the live pane hosting opencode, or None.

        Raises ProviderError when the environment is unusable.
        """
        ...

    @abstractmethod
    def start(self) -> None:
        ...

    @abstractmethod
    def stop(self) -> None:
        ...

    def toggle(self) -> None:
        if self.get_pane_id():
            self.stop()
        else:
            self.start()
