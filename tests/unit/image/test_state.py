"""Tests for the upload job state machine."""

from __future__ import annotations

import pytest

from imgbed.image.state import JobStateMachine
from imgbed.models import JobState


class TestJobStateMachine:
    def test_starts_pending(self):
        sm = JobStateMachine("abc12")
        assert sm.state is JobState.PENDING
        assert sm.history == [JobState.PENDING]
        assert not sm.is_terminal

    def test_upload_path(self):
        sm = JobStateMachine("abc12")
        for state in (
            JobState.ENCODING,
            JobState.CACHE_CHECK,
            JobState.UPLOADING,
            JobState.PATCHING,
            JobState.DONE,
        ):
            sm.transition(state)
        assert sm.is_terminal
        assert sm.history[-1] is JobState.DONE

    def test_cache_hit_skips_uploading(self):
        sm = JobStateMachine("abc12")
        sm.transition(JobState.ENCODING)
        sm.transition(JobState.CACHE_CHECK)
        sm.transition(JobState.PATCHING)
        assert JobState.UPLOADING not in sm.history

    def test_invalid_transition_raises(self):
        sm = JobStateMachine("abc12")
        with pytest.raises(ValueError, match="pending -> done"):
            sm.transition(JobState.DONE)

    def test_no_transition_out_of_done(self):
        sm = JobStateMachine("abc12")
        for state in (JobState.ENCODING, JobState.CACHE_CHECK, JobState.PATCHING, JobState.DONE):
            sm.transition(state)
        with pytest.raises(ValueError):
            sm.transition(JobState.PATCHING)

    @pytest.mark.parametrize("reached", [[JobState.ENCODING], [JobState.ENCODING, JobState.CACHE_CHECK, JobState.UPLOADING]])
    def test_fail_from_encoding_or_uploading(self, reached):
        sm = JobStateMachine("abc12")
        for state in reached:
            sm.transition(state)
        sm.fail()
        assert sm.state is JobState.FAILED
        assert sm.is_terminal

    def test_fail_elsewhere_is_ignored(self):
        sm = JobStateMachine("abc12")
        sm.fail()
        assert sm.state is JobState.PENDING
