"""Unit tests for FastTrack."""

import pytest

from retrychain.policies.fast_track import FastTrack


def test_fast_track_first_retry_is_immediate(create_state, mock_next):
    """Attempt 1 gets no delay, but next still runs."""
    state = create_state(attempt=1)

    assert FastTrack()(state, mock_next) == 0
    mock_next.assert_called_once_with(state)


@pytest.mark.parametrize("attempt", [2, 3, 7])
def test_fast_track_passes_through_later_attempts(create_state, mock_next, attempt):
    """From attempt 2 on, the delegated delay is returned unchanged."""
    assert FastTrack()(create_state(attempt=attempt), mock_next) == 100


def test_fast_track_propagates_next_failure(create_state):
    """A downstream give-up is not masked, even on attempt 1."""
    state = create_state(attempt=1)

    def next_policy(state, next=None):
        raise state.error

    with pytest.raises(ValueError):
        FastTrack()(state, next_policy)


def test_fast_track_requires_next(create_state):
    """Without a next stage, FastTrack gives up."""
    with pytest.raises(ValueError):
        FastTrack()(create_state(attempt=1))
