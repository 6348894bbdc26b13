"""Fire-and-forget notification dispatch.

Transitions hand events to the dispatcher after their commit. Delivery
happens on a background thread pool; sink failures are logged and never
reach the caller.
"""

import logging
from concurrent.futures import Future, ThreadPoolExecutor
from dataclasses import asdict
from typing import Optional

from ...domain.ports.notification_port import NotificationPort, WorkflowEvent
from ...observability.metrics import external_call_failures_total
from ...observability.request_id import bind_context

logger = logging.getLogger(__name__)


class LoggingNotificationSink(NotificationPort):
    """Default sink: writes events to the application log."""

    def notify(self, event: WorkflowEvent) -> None:
        logger.info(
            f"Workflow event: {event.action} {event.prior_status} -> {event.new_status}",
            extra={"document_id": event.document_id, "action": event.action},
        )


class NotificationDispatcher:
    """Submits events to a NotificationPort without blocking the caller.

    Example:
        dispatcher = NotificationDispatcher(EmailSink(...), max_workers=2)
        dispatcher.dispatch(event)
        ...
        dispatcher.shutdown()
    """

    def __init__(self, sink: Optional[NotificationPort] = None, max_workers: int = 2):
        self.sink = sink or LoggingNotificationSink()
        self._executor = ThreadPoolExecutor(
            max_workers=max_workers, thread_name_prefix="notify"
        )

    def dispatch(self, event: WorkflowEvent) -> Optional[Future]:
        """Queue an event for delivery. Never raises."""
        try:
            future = self._executor.submit(bind_context(self.sink.notify), event)
        except RuntimeError as e:
            # Executor already shut down
            logger.warning(f"Notification dropped for document {event.document_id}: {e}")
            return None
        future.add_done_callback(lambda f: self._on_done(f, event))
        return future

    def _on_done(self, future: Future, event: WorkflowEvent) -> None:
        error = future.exception()
        if error is not None:
            external_call_failures_total.labels(service="notification").inc()
            logger.warning(
                f"Notification sink failed for document {event.document_id}: {error}",
                extra={"document_id": event.document_id, "action": event.action},
            )
            logger.debug(f"Undelivered event: {asdict(event)}")

    def shutdown(self, wait: bool = True) -> None:
        """Stop accepting events; optionally wait for queued deliveries."""
        self._executor.shutdown(wait=wait)
