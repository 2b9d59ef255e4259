"""Run/idle/processing state of a scheduler loop."""

from enum import Enum


class Phase(Enum):
    """Observable phase of a scheduler.

    STOPPED and DRAINING are the not-running phases; DRAINING means a stop
    was requested while a job was still being processed.
    """
    STOPPED = "stopped"
    RUNNING = "running"
    PROCESSING = "processing"
    IDLE = "idle"
    DRAINING = "draining"


class SchedulerState:
    """State machine driven by the tick loop.

    ``Stopped`` or ``Running{processing, idle}``. Transitions are explicit
    methods so the loop never flips flags directly.
    """

    def __init__(self):
        self.running = False
        self.processing = False
        self.idle = False

    @property
    def phase(self) -> Phase:
        if not self.running:
            return Phase.DRAINING if self.processing else Phase.STOPPED
        if self.processing:
            return Phase.PROCESSING
        if self.idle:
            return Phase.IDLE
        return Phase.RUNNING

    def start(self) -> bool:
        """Enter the running state.

        Returns:
            False if already running
        """
        if self.running:
            return False
        self.running = True
        return True

    def request_stop(self) -> bool:
        """Leave the running state.

        Returns:
            True if a tick is still processing and must be drained
        """
        self.running = False
        return self.processing

    def begin_claim(self) -> None:
        self.processing = True

    def found_nothing(self) -> bool:
        """Record an empty claim.

        Returns:
            True only on the transition into idle
        """
        self.processing = False
        if self.idle:
            return False
        self.idle = True
        return True

    def found_job(self) -> None:
        self.idle = False

    def finish_tick(self) -> None:
        self.processing = False

    def __repr__(self) -> str:
        return f"SchedulerState(phase={self.phase.value})"
