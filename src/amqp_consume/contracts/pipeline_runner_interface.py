"""Defines the contract for running a consuming command per delivery."""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass
from types import TracebackType
from typing import Optional, Sequence, Type


@dataclass(frozen=True)
class PipelineResult:
    """Outcome of one consuming command run."""

    exited_cleanly: bool
    returncode: Optional[int] = None
    input_broken: bool = False


class IPipeline(ABC):
    """A running command with a writable standard input."""

    @abstractmethod
    def write(self, data: bytes) -> None:
        """Write ``data`` to the command's standard input."""

    @abstractmethod
    def close_input(self) -> None:
        """Signal end-of-input to the command."""

    @abstractmethod
    def finish(self) -> PipelineResult:
        """Close input if needed, wait for the command and report its outcome."""

    @abstractmethod
    def terminate(self) -> None:
        """Tear the command down without waiting for it to finish on its own."""

    def __enter__(self) -> IPipeline:
        return self

    def __exit__(
        self,
        exc_type: Optional[Type[BaseException]],
        exc_val: Optional[BaseException],
        exc_tb: Optional[TracebackType],
    ) -> None:
        if exc_type is not None:
            self.terminate()
        else:
            self.finish()


class IPipelineRunner(ABC):
    """Starts one pipeline per delivered message."""

    @abstractmethod
    def start(self, command: Sequence[str]) -> IPipeline:
        """Spawn ``command`` and return its pipeline."""
