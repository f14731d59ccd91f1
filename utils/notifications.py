# utils/notifications.py
import logging
from dataclasses import asdict, dataclass
from typing import List

logger = logging.getLogger(__name__)

TRY_AGAIN = "Please try again later."


@dataclass
class Toast:
    title: str
    description: str = ""
    variant: str = "default"  # default or destructive


class Notifier:
    """Collects the transient notifications a view emits while handling an action."""

    def __init__(self):
        self._toasts: List[Toast] = []

    def notify(self, title: str, description: str = "", variant: str = "default") -> Toast:
        toast = Toast(title=title, description=description, variant=variant)
        self._toasts.append(toast)
        if variant == "destructive":
            logger.warning(f"[TOAST] {title}: {description}")
        else:
            logger.info(f"[TOAST] {title}: {description}")
        return toast

    def error(self, title: str, description: str = TRY_AGAIN) -> Toast:
        return self.notify(title, description, variant="destructive")

    @property
    def toasts(self) -> List[Toast]:
        return list(self._toasts)

    def drain(self) -> List[dict]:
        drained = [asdict(t) for t in self._toasts]
        self._toasts.clear()
        return drained
