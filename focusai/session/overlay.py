"""Maps classification decisions onto the blocking reminder."""

from collections.abc import Callable

from focusai.logger import logger
from focusai.model.models import Decision, OverlayState


class OverlayMapper:
    """Holds the overlay state and fires the alert on its rising edge.

    ``alert`` is called with the target title each time the overlay goes
    from hidden to visible. It must not block; exceptions it raises are
    logged and ignored.
    """

    def __init__(self, alert: Callable[[str], object] | None = None) -> None:
        self.alert = alert
        self.state = OverlayState()

    def apply(self, decision: Decision, goal: str) -> OverlayState:
        """Update the overlay from one decision and return the new state."""
        previous = self.state
        if decision is Decision.IRRELEVANT:
            self.state = OverlayState(visible=True, target_title=goal)
            if not previous.visible:
                self._fire_alert(goal)
        else:
            self.state = OverlayState(visible=False, target_title=previous.target_title)
        return self.state

    def hide(self) -> OverlayState:
        """Hide the overlay without touching the target title."""
        self.state = OverlayState(visible=False, target_title=self.state.target_title)
        return self.state

    def reset(self) -> OverlayState:
        """Back to the initial hidden state (session boundary)."""
        self.state = OverlayState()
        return self.state

    def _fire_alert(self, target_title: str) -> None:
        if self.alert is None:
            return
        try:
            self.alert(target_title)
        except Exception:  # noqa: BLE001
            logger.debug("Alert failed", exc_info=True)
