"""Unit tests for ModelLifecycle."""

import pytest

from dictate2me.errors import InvalidTransitionError
from dictate2me.models.transcription import ModelState
from dictate2me.transcription.lifecycle import ModelLifecycle


@pytest.mark.unit
class TestModelLifecycle:
    """Test cases for ModelLifecycle class."""

    def test_starts_unloaded(self):
        lifecycle = ModelLifecycle()

        assert lifecycle.state == ModelState.UNLOADED
        assert lifecycle.progress == 0.0
        assert lifecycle.reason is None

    def test_load_to_ready(self):
        lifecycle = ModelLifecycle()

        lifecycle.begin_loading()
        lifecycle.update_progress(30)
        status = lifecycle.mark_ready()

        assert status.state == ModelState.READY
        assert status.progress == 100.0

    def test_progress_is_monotonic_and_clamped(self):
        lifecycle = ModelLifecycle()
        lifecycle.begin_loading()

        lifecycle.update_progress(60)
        assert lifecycle.update_progress(40).progress == 60
        assert lifecycle.update_progress(250).progress == 100
        assert lifecycle.state == ModelState.LOADING

    def test_negative_progress_clamped_to_zero(self):
        lifecycle = ModelLifecycle()
        lifecycle.begin_loading()

        assert lifecycle.update_progress(-5).progress == 0.0

    def test_progress_ignored_unless_loading(self):
        lifecycle = ModelLifecycle()

        status = lifecycle.update_progress(50)

        assert status.state == ModelState.UNLOADED
        assert status.progress == 0.0

    def test_failure_keeps_reason_and_allows_retry(self):
        lifecycle = ModelLifecycle()
        lifecycle.begin_loading()

        failed = lifecycle.mark_failed("network unreachable")
        assert failed.state == ModelState.FAILED
        assert failed.reason == "network unreachable"

        retry = lifecycle.begin_loading()
        assert retry.state == ModelState.LOADING
        assert retry.reason is None

    @pytest.mark.parametrize("setup,action", [
        ([], "mark_ready"),
        ([], "mark_failed"),
        (["begin_loading", "mark_ready"], "begin_loading"),
        (["begin_loading", "mark_ready"], "mark_failed"),
    ])
    def test_invalid_transitions_raise(self, setup, action):
        lifecycle = ModelLifecycle()
        for step in setup:
            getattr(lifecycle, step)()

        with pytest.raises(InvalidTransitionError) as exc_info:
            if action == "mark_failed":
                lifecycle.mark_failed("boom")
            else:
                getattr(lifecycle, action)()
        assert exc_info.value.reason == "invalid_transition"

    def test_reset_returns_to_unloaded(self):
        lifecycle = ModelLifecycle()
        lifecycle.begin_loading()
        lifecycle.mark_ready()

        status = lifecycle.reset()

        assert status.state == ModelState.UNLOADED
        assert lifecycle.begin_loading().state == ModelState.LOADING
