"""Queue selection and setup."""

from .queue_resolver import QueueResolver
from .queue_spec import QueueSpec, ResolvedQueue

__all__ = ["QueueResolver", "QueueSpec", "ResolvedQueue"]
