"""Error types raised by the consume workflow."""

from __future__ import annotations

from typing import Optional


class ConsumeError(Exception):
    """Base exception for consume errors."""


class ConfigurationError(ConsumeError, ValueError):
    """Raised when the consumer is configured inconsistently."""


class BrokerRPCError(ConsumeError):
    """Raised when a broker RPC or frame wait fails.

    The consume session cannot be trusted after one of these, so callers are
    expected to let it propagate up to the top-level handler.
    """

    def __init__(self, rpc: str, detail: Optional[object] = None) -> None:
        self.rpc = rpc
        self.detail = detail
        message = rpc if detail is None else f"{rpc}: {detail}"
        super().__init__(message)


class UnexpectedFrameError(BrokerRPCError):
    """Raised when the content frames of a delivery arrive out of order."""
