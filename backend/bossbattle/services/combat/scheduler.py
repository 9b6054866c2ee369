from typing import Any, Callable, Dict, List


class PendingDefeat:
    """Handle for one scheduled ``bossDefeated`` announcement."""

    def __init__(self, summary: Dict[str, Any], delay_ms: int):
        self.summary = summary
        self.delay_ms = delay_ms
        self.cancelled = False
        self.fired = False

    @property
    def active(self) -> bool:
        return not (self.cancelled or self.fired)

    def cancel(self) -> None:
        self.cancelled = True


class DefeatScheduler:
    """Delays the defeat announcement so the killing blow can play out client side.

    ``start_task`` and ``sleep`` are the Socket.IO background primitives
    (``socketio.start_background_task`` / ``socketio.sleep``). ``announce`` is
    invoked from the background task with the handle once the delay elapsed;
    it must call ``fire`` under the same lock that guards ``schedule`` and
    ``cancel_pending`` and only announce when that returns True.
    """

    def __init__(
        self,
        start_task: Callable[..., Any],
        sleep: Callable[[float], Any],
        announce: Callable[[PendingDefeat], None],
    ):
        self._start_task = start_task
        self._sleep = sleep
        self._announce = announce
        # Each kill gets its own independent handle
        self.pending: List[PendingDefeat] = []

    def schedule(self, summary: Dict[str, Any], delay_ms: int) -> PendingDefeat:
        handle = PendingDefeat(summary, delay_ms)
        self.pending.append(handle)
        self._start_task(self._worker, handle)
        return handle

    def cancel_pending(self) -> int:
        """Cancel every announcement still waiting; returns how many were dropped."""
        handles, self.pending = self.pending, []
        dropped = 0
        for handle in handles:
            if handle.active:
                handle.cancel()
                dropped += 1
        return dropped

    def fire(self, handle: PendingDefeat) -> bool:
        """Mark the handle as announced. False if it was cancelled or already fired."""
        if not handle.active:
            return False
        handle.fired = True
        if handle in self.pending:
            self.pending.remove(handle)
        return True

    def _worker(self, handle: PendingDefeat) -> None:
        if handle.delay_ms > 0:
            self._sleep(handle.delay_ms / 1000.0)
        self._announce(handle)
