"""Provides consume-session options for the delivery loop."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional, Sequence

from amqp_consume.errors import ConfigurationError

MAX_PREFETCH_COUNT = 65535


@dataclass(frozen=True)
class ConsumeOptions:
    """Encapsulates how deliveries are consumed and handed to the command.

    A negative ``count`` consumes until the process is stopped. A ``count``
    between 1 and 65535 also becomes the prefetch limit.
    """

    command: Sequence[str]
    no_ack: bool = False
    count: int = -1

    def __post_init__(self) -> None:
        object.__setattr__(self, "command", tuple(self.command))

    def validate(self) -> None:
        if not self.command or not self.command[0]:
            raise ConfigurationError("consuming command not specified")

    @property
    def limit(self) -> Optional[int]:
        return self.count if self.count >= 0 else None

    @property
    def prefetch_count(self) -> Optional[int]:
        if 1 <= self.count <= MAX_PREFETCH_COUNT:
            return self.count
        return None
