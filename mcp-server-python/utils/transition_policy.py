"""
Status transition policy for the job pipeline.

This module enforces the board's move rules:
- Moves are strictly adjacent (advance = next status, retreat = previous)
- Advancing from Finished and retreating from Booked are no-ops with a signal
- Delivered -> Finished requires inSAP set and a non-blank commercial description
- Every other move, including Finished -> Delivered, is unguarded

Arbitrary status writes are not planned here; they go through the
repository's administrative override.
"""

from typing import Any, Dict, List, Optional

from models.job import Job
from models.status import (
    ALL_JOB_STATUSES_ORDERED,
    INITIAL_STATUS,
    TERMINAL_STATUS,
    JobStatus,
    status_index,
)

SIGNAL_AT_TERMINAL = "at_terminal"
SIGNAL_AT_INITIAL = "at_initial"

UNMET_IN_SAP = "in_sap_not_set"
UNMET_COMMERCIAL_DESCRIPTION = "commercial_description_empty"

# Guarded edges: (from, to) -> guard name
GUARDED_TRANSITIONS = {(JobStatus.DELIVERED, JobStatus.FINISHED): "finish"}


class TransitionResult:
    """Result of planning a single status move."""

    def __init__(
        self,
        allowed: bool,
        current_status: JobStatus,
        target_status: JobStatus,
        is_noop: bool = False,
        signal: Optional[str] = None,
        unmet_conditions: Optional[List[str]] = None,
    ):
        """
        Initialize a transition result.

        Args:
            allowed: Whether the move may be written
            current_status: Status the job has now
            target_status: Status the move would write (equal to current on no-op)
            is_noop: Whether there is nothing to write
            signal: ``at_terminal`` or ``at_initial`` for boundary no-ops
            unmet_conditions: Guard conditions that blocked the move
        """
        self.allowed = allowed
        self.current_status = current_status
        self.target_status = target_status
        self.is_noop = is_noop
        self.signal = signal
        self.unmet_conditions = unmet_conditions or []

    def to_dict(self) -> Dict[str, Any]:
        """Convert result to dictionary format."""
        result = {
            "allowed": self.allowed,
            "is_noop": self.is_noop,
            "current_status": self.current_status.value,
            "target_status": self.target_status.value,
        }
        if self.signal:
            result["signal"] = self.signal
        if self.unmet_conditions:
            result["unmet_conditions"] = self.unmet_conditions
        return result


def check_finish_guard(job: Job) -> List[str]:
    """
    Return the unmet conditions for moving a job to Finished.

    Both inSAP must be true and the commercial description must be
    non-empty after trimming. An empty list means the guard passes.
    """
    unmet = []
    if not job.in_sap:
        unmet.append(UNMET_IN_SAP)
    if not (job.commercial_description or "").strip():
        unmet.append(UNMET_COMMERCIAL_DESCRIPTION)
    return unmet


def _plan_move(job: Job, target: JobStatus) -> TransitionResult:
    current = JobStatus(job.status)
    if GUARDED_TRANSITIONS.get((current, target)) == "finish":
        unmet = check_finish_guard(job)
        if unmet:
            return TransitionResult(
                allowed=False,
                current_status=current,
                target_status=target,
                unmet_conditions=unmet,
            )
    return TransitionResult(allowed=True, current_status=current, target_status=target)


def plan_advance(job: Job) -> TransitionResult:
    """
    Plan moving a job one status forward.

    Booked plans Received; Finished plans a no-op with ``at_terminal``.
    Delivered -> Finished is blocked when the finish guard fails.
    """
    current = JobStatus(job.status)
    if current == TERMINAL_STATUS:
        return TransitionResult(
            allowed=True,
            current_status=current,
            target_status=current,
            is_noop=True,
            signal=SIGNAL_AT_TERMINAL,
        )
    target = ALL_JOB_STATUSES_ORDERED[status_index(current) + 1]
    return _plan_move(job, target)


def plan_retreat(job: Job) -> TransitionResult:
    """Plan moving a job one status back. Retreating is never guarded."""
    current = JobStatus(job.status)
    if current == INITIAL_STATUS:
        return TransitionResult(
            allowed=True,
            current_status=current,
            target_status=current,
            is_noop=True,
            signal=SIGNAL_AT_INITIAL,
        )
    target = ALL_JOB_STATUSES_ORDERED[status_index(current) - 1]
    return _plan_move(job, target)
