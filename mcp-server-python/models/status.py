"""
Centralized, type-safe status definitions for the AccessFlow job pipeline.

``JobStatus`` is the single source of truth for the five pipeline stages.
It inherits from ``(str, Enum)`` so that members compare equal to plain
strings and serialize naturally to JSON at API boundaries.

Pipeline order (initial -> terminal)::

    Booked -> Received -> Encoded -> Delivered -> Finished
"""

from enum import Enum
from typing import List


class JobStatus(str, Enum):
    """Enum for the status of a job in the delivery pipeline."""

    BOOKED = "Booked"
    RECEIVED = "Received"
    ENCODED = "Encoded"
    DELIVERED = "Delivered"
    FINISHED = "Finished"


ALL_JOB_STATUSES_ORDERED: List[JobStatus] = [
    JobStatus.BOOKED,
    JobStatus.RECEIVED,
    JobStatus.ENCODED,
    JobStatus.DELIVERED,
    JobStatus.FINISHED,
]

OPEN_JOB_STATUSES: List[JobStatus] = [
    JobStatus.BOOKED,
    JobStatus.RECEIVED,
    JobStatus.ENCODED,
    JobStatus.DELIVERED,
]

FINISHED_JOB_STATUSES: List[JobStatus] = [JobStatus.FINISHED]

INITIAL_STATUS = JobStatus.BOOKED
TERMINAL_STATUS = JobStatus.FINISHED


def status_index(status: JobStatus) -> int:
    """Return the position of a status in the pipeline (Booked=0 .. Finished=4)."""
    return ALL_JOB_STATUSES_ORDERED.index(JobStatus(status))
