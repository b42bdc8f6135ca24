"""Upload job state machine.

Tracks one job through its lifecycle and rejects impossible transitions,
so a job can never patch the document twice or patch after failing.
"""

from __future__ import annotations

from imgbed.models import JobState
from imgbed.observability import get_logger, log_fields

log = get_logger("imgbed.image.state")


class JobStateMachine:
    """Finite state machine for a single upload job.

    Valid transitions::

        PENDING     -> ENCODING
        ENCODING    -> CACHE_CHECK | FAILED
        CACHE_CHECK -> UPLOADING | PATCHING
        UPLOADING   -> PATCHING | FAILED
        PATCHING    -> DONE
        DONE        -> (terminal)
        FAILED      -> (terminal)

    A cache hit goes straight from ``CACHE_CHECK`` to ``PATCHING``.

    Parameters
    ----------
    job_id:
        Identifier used in log records (the placeholder id or the
        reference path).
    """

    VALID_TRANSITIONS: dict[JobState, set[JobState]] = {
        JobState.PENDING: {JobState.ENCODING},
        JobState.ENCODING: {JobState.CACHE_CHECK, JobState.FAILED},
        JobState.CACHE_CHECK: {JobState.UPLOADING, JobState.PATCHING},
        JobState.UPLOADING: {JobState.PATCHING, JobState.FAILED},
        JobState.PATCHING: {JobState.DONE},
        JobState.DONE: set(),
        JobState.FAILED: set(),
    }

    def __init__(self, job_id: str) -> None:
        self.job_id: str = job_id
        self.state: JobState = JobState.PENDING
        self.history: list[JobState] = [JobState.PENDING]

    @property
    def is_terminal(self) -> bool:
        return not self.VALID_TRANSITIONS[self.state]

    def transition(self, new_state: JobState) -> None:
        """Move to *new_state*.

        Raises
        ------
        ValueError
            If the transition from the current state is not valid.
        """
        allowed = self.VALID_TRANSITIONS.get(self.state, set())
        if new_state not in allowed:
            raise ValueError(
                f"Invalid state transition: {self.state.value} -> {new_state.value} "
                f"for job {self.job_id}. "
                f"Allowed transitions from {self.state.value}: "
                f"{{{', '.join(sorted(s.value for s in allowed))}}}"
            )
        log.debug(
            "job transition",
            extra=log_fields(
                job=self.job_id, previous=self.state.value, state=new_state.value,
            ),
        )
        self.state = new_state
        self.history.append(new_state)

    def fail(self) -> None:
        """Transition to ``FAILED`` from whichever state allows it.

        Failures raised outside ``ENCODING`` and ``UPLOADING`` (for
        example while patching) leave the state untouched.
        """
        if JobState.FAILED in self.VALID_TRANSITIONS[self.state]:
            self.transition(JobState.FAILED)
