"""User-facing notifications ("toasts") for the Artify application."""

import logging
from dataclasses import dataclass
from typing import Callable, List, Optional

# Set up logging
logger = logging.getLogger(__name__)

DEFAULT = "default"
DESTRUCTIVE = "destructive"


@dataclass(frozen=True)
class Notification:
    """A short message shown to the user."""
    title: str
    description: str
    variant: str = DEFAULT

    @property
    def is_error(self) -> bool:
        return self.variant == DESTRUCTIVE


class Notifier:
    """Collects notifications and forwards them to an optional sink.

    The web app passes a sink that shows a toast; the CLI logs them.
    """

    def __init__(self, sink: Optional[Callable[[Notification], None]] = None, history_size: int = 20):
        self.sink = sink
        self.history_size = history_size
        self.history: List[Notification] = []

    def notify(self, title: str, description: str, variant: str = DEFAULT) -> Notification:
        notification = Notification(title=title, description=description, variant=variant)
        self.history.append(notification)
        del self.history[:-self.history_size]

        if notification.is_error:
            logger.warning(f"{title}: {description}")
        else:
            logger.info(f"{title}: {description}")

        if self.sink is not None:
            try:
                self.sink(notification)
            except Exception as e:
                logger.error(f"Error in notification sink: {e}")
        return notification

    def error(self, title: str, description: str) -> Notification:
        return self.notify(title, description, DESTRUCTIVE)

    @property
    def last(self) -> Optional[Notification]:
        return self.history[-1] if self.history else None

    def drain(self) -> List[Notification]:
        """Return and forget the collected notifications."""
        pending = self.history
        self.history = []
        return pending
