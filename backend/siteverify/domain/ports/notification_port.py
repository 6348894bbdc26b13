"""Notification Port - fire-and-forget outbound events."""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any, Optional


@dataclass(frozen=True)
class WorkflowEvent:
    """Notification describing an accepted transition."""
    document_id: str
    action: str
    actor_id: str
    prior_status: Optional[str]
    new_status: str
    details: dict[str, Any] = field(default_factory=dict)


class NotificationPort(ABC):
    """Port interface for notification sinks (email, webhooks, ...).

    Failures raised here are logged by the dispatcher and never roll back
    or block the transition that produced the event.
    """

    @abstractmethod
    def notify(self, event: WorkflowEvent) -> None:
        pass
