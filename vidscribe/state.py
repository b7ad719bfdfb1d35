"""Stage tracking for a video submission."""

import logging
from enum import Enum
from typing import Any, Callable, List, Tuple

from .exceptions import InvalidTransitionError

logger = logging.getLogger(__name__)


class PipelineStage(str, Enum):
    """Stages of one submission, in order."""

    WAITING = "waiting"
    CONVERTING = "converting"
    UPLOADING = "uploading"
    GENERATING = "generating"
    SUCCESS = "success"

    @property
    def label(self) -> str:
        """Human-readable text for the submit control."""
        return _STAGE_LABELS[self]

    @property
    def inputs_editable(self) -> bool:
        """Whether the video and prompt inputs accept changes."""
        return self is PipelineStage.WAITING

    @property
    def is_terminal(self) -> bool:
        return self is PipelineStage.SUCCESS


_STAGE_LABELS = {
    PipelineStage.WAITING: "Load video",
    PipelineStage.CONVERTING: "Converting...",
    PipelineStage.UPLOADING: "Uploading...",
    PipelineStage.GENERATING: "Generating...",
    PipelineStage.SUCCESS: "Success!",
}

STAGE_ORDER: Tuple[PipelineStage, ...] = tuple(PipelineStage)


def advance(stage: PipelineStage) -> PipelineStage:
    """Return the stage that follows the given one.

    Raises:
        InvalidTransitionError: If the stage is terminal.
    """
    index = STAGE_ORDER.index(stage)
    if index == len(STAGE_ORDER) - 1:
        raise InvalidTransitionError(f"No transition out of stage '{stage.value}'")
    return STAGE_ORDER[index + 1]


class PipelineStateManager:
    """Holds the current stage of one submission and notifies observers."""

    def __init__(self):
        """Initialize state manager in the WAITING stage."""
        self._stage: PipelineStage = PipelineStage.WAITING
        self._history: List[PipelineStage] = [self._stage]
        self._observers: List[Callable[[PipelineStage], Any]] = []

    @property
    def current_stage(self) -> PipelineStage:
        return self._stage

    @property
    def history(self) -> List[PipelineStage]:
        """Stages entered so far, starting with WAITING."""
        return list(self._history)

    def add_observer(self, observer: Callable[[PipelineStage], Any]) -> None:
        """Add an observer callback, called with each newly entered stage."""
        self._observers.append(observer)

    def _notify_observers(self) -> None:
        for observer in self._observers:
            try:
                observer(self._stage)
            except Exception:
                # Observer errors must not break stage tracking
                logger.exception(f"Stage observer failed for '{self._stage.value}'")

    def advance(self) -> PipelineStage:
        """Move to the next stage.

        Returns:
            The stage entered.

        Raises:
            InvalidTransitionError: If the current stage is terminal.
        """
        self._stage = advance(self._stage)
        self._history.append(self._stage)
        logger.debug(f"Entered stage '{self._stage.value}'")
        self._notify_observers()
        return self._stage

    def get_status(self) -> Tuple[str, str]:
        """Get the current stage value and its display label."""
        return self._stage.value, self._stage.label
