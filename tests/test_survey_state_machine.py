"""
Unit tests for the field survey state machine.

Tests cover:
- Start preconditions and restart
- Marking found and circular advance
- Skip and go-to navigation
- Threshold clamping
- Arrival events and listeners
- Progress snapshot semantics
"""
import logging
import pytest

from boundary_survey.domain.errors import SurveyPreconditionError
from boundary_survey.domain.models import SurveyPhase, Vertex
from boundary_survey.services.domain.survey_state_machine import SurveyConfig, SurveyStateMachine


@pytest.fixture
def five_vertices() -> list[Vertex]:
    return [Vertex(id=i, lat=-32.328 + i * 0.001, lng=18.826) for i in range(5)]


# ============================================================
# Lifecycle Tests
# ============================================================

class TestLifecycle:
    """Tests for starting and stopping a survey."""

    def test_initially_inactive(self, state_machine):
        """A new machine is inactive with no target."""
        assert state_machine.phase is SurveyPhase.INACTIVE
        assert state_machine.current_target() is None
        assert state_machine.is_complete() is False
        assert state_machine.proximity_threshold == 1.0

    def test_start_requires_vertices(self, state_machine):
        """Starting with no vertices should fail."""
        with pytest.raises(SurveyPreconditionError, match="No coordinates"):
            state_machine.start([], feed_available=True)

        assert state_machine.is_active is False

    def test_start_requires_feed(self, state_machine, sample_vertices):
        """Starting without a position feed should fail."""
        with pytest.raises(SurveyPreconditionError, match="GPS tracking"):
            state_machine.start(sample_vertices, feed_available=False)

        assert state_machine.is_active is False

    def test_start_targets_first_vertex(self, state_machine, sample_vertices):
        """start activates the survey at index 0."""
        state_machine.start(sample_vertices, feed_available=True)

        target = state_machine.current_target()
        assert state_machine.is_active is True
        assert target.index == 0
        assert target.number == 1
        assert target.vertex.id == sample_vertices[0].id
        assert state_machine.progress().total == 3

    def test_stop_keeps_found_points(self, state_machine, sample_vertices):
        """stop deactivates but keeps progress until the next start."""
        state_machine.start(sample_vertices, feed_available=True)
        state_machine.mark_current_as_found()

        state_machine.stop()

        assert state_machine.is_active is False
        assert state_machine.current_target() is None
        assert state_machine.progress().completed == 1
        assert state_machine.distance_to_target is None

    def test_restart_clears_progress(self, state_machine, sample_vertices):
        """Starting again resets found points and the target."""
        state_machine.start(sample_vertices, feed_available=True)
        state_machine.mark_current_as_found()
        state_machine.mark_current_as_found()

        state_machine.start(sample_vertices, feed_available=True)

        assert state_machine.current_target_index == 0
        assert state_machine.found_indices == frozenset()

    def test_progress_total_is_snapshot(self, state_machine, sample_vertices):
        """Changing the caller's list after start does not change totals."""
        vertices = list(sample_vertices)
        state_machine.start(vertices, feed_available=True)

        vertices.append(Vertex(id=99, lat=0.0, lng=0.0))

        assert state_machine.progress().total == 3


# ============================================================
# Navigation Tests
# ============================================================

class TestNavigation:
    """Tests for found/skip/go-to sequencing."""

    def test_mark_found_until_complete(self, state_machine, sample_vertices):
        """Marking each target found completes the survey; further marks are no-ops."""
        state_machine.start(sample_vertices, feed_available=True)

        assert state_machine.mark_current_as_found() is True
        assert state_machine.current_target_index == 1
        assert state_machine.progress().completed == 1

        state_machine.mark_current_as_found()
        state_machine.mark_current_as_found()
        assert state_machine.is_complete() is True
        final_index = state_machine.current_target_index

        assert state_machine.mark_current_as_found() is False
        assert state_machine.current_target_index == final_index
        assert state_machine.progress().completed == 3
        assert state_machine.progress().percentage == 100.0

    def test_skip_wraps_around(self, state_machine, sample_vertices):
        """skip moves forward and wraps to the start."""
        state_machine.start(sample_vertices, feed_available=True)
        state_machine.go_to(1)

        state_machine.skip()
        assert state_machine.current_target_index == 2

        state_machine.skip()
        assert state_machine.current_target_index == 0

    def test_mark_found_prefers_forward_then_wraps(self, state_machine, five_vertices):
        """After skipping, found advances past the end back to skipped points."""
        state_machine.start(five_vertices, feed_available=True)
        state_machine.skip()
        state_machine.skip()

        state_machine.mark_current_as_found()
        assert state_machine.current_target_index == 3
        state_machine.mark_current_as_found()
        assert state_machine.current_target_index == 4
        state_machine.mark_current_as_found()
        assert state_machine.current_target_index == 0
        state_machine.mark_current_as_found()
        assert state_machine.current_target_index == 1

    def test_skip_ignores_found_points(self, state_machine, five_vertices):
        """skip jumps over found targets."""
        state_machine.start(five_vertices, feed_available=True)
        state_machine.go_to(2)
        state_machine.mark_current_as_found()
        state_machine.go_to(1)

        state_machine.skip()

        assert state_machine.current_target_index == 3

    def test_go_to_out_of_range_is_ignored(self, state_machine, sample_vertices):
        """Invalid indices leave the target unchanged."""
        state_machine.start(sample_vertices, feed_available=True)

        assert state_machine.go_to(3) is False
        assert state_machine.go_to(-1) is False
        assert state_machine.current_target_index == 0

    def test_go_to_found_point(self, state_machine, sample_vertices):
        """go_to may select a point that is already found."""
        state_machine.start(sample_vertices, feed_available=True)
        state_machine.mark_current_as_found()

        assert state_machine.go_to(0) is True
        assert state_machine.current_target().is_found is True

    def test_commands_ignored_while_inactive(self, state_machine):
        """Navigation is a no-op before start."""
        assert state_machine.mark_current_as_found() is False
        assert state_machine.skip() is False
        assert state_machine.go_to(0) is False
        assert state_machine.phase is SurveyPhase.INACTIVE


# ============================================================
# Threshold Tests
# ============================================================

class TestThreshold:
    """Tests for arrival radius clamping."""

    @pytest.mark.parametrize("requested, applied", [
        (0, 1.0),
        (-5, 1.0),
        (1000, 50.0),
        (7.5, 7.5),
        (50, 50.0),
    ])
    def test_threshold_is_clamped(self, state_machine, requested, applied):
        """Thresholds are clamped to [1, 50] meters."""
        assert state_machine.set_proximity_threshold(requested) == applied
        assert state_machine.proximity_threshold == applied

    def test_default_threshold_from_config(self):
        """The starting threshold comes from configuration."""
        machine = SurveyStateMachine(config=SurveyConfig(default_threshold_m=5.0))

        assert machine.proximity_threshold == 5.0


# ============================================================
# Fix Handling Tests
# ============================================================

class TestFixes:
    """Tests for proximity evaluation and arrival events."""

    def test_fix_ignored_while_inactive(self, state_machine, sample_vertices, make_fix):
        """No evaluation happens before start."""
        assert state_machine.on_fix(make_fix(sample_vertices[0])) is None
        assert state_machine.distance_to_target is None

    def test_fix_updates_distance(self, state_machine, sample_vertices, make_fix):
        """A fix records the distance to the current target."""
        state_machine.start(sample_vertices, feed_available=True)

        result = state_machine.on_fix(make_fix(sample_vertices[0], north_m=8.0))

        assert result.distance == pytest.approx(8.0, rel=1e-6)
        assert state_machine.distance_to_target == pytest.approx(8.0, rel=1e-6)
        assert state_machine.is_near_target is False

    def test_arrival_emits_event_once(self, state_machine, sample_vertices, make_fix):
        """Listeners receive one event per arrival."""
        events = []
        state_machine.add_arrival_listener(events.append)
        state_machine.set_proximity_threshold(10.0)
        state_machine.start(sample_vertices, feed_available=True)

        state_machine.on_fix(make_fix(sample_vertices[0], north_m=15.0))
        state_machine.on_fix(make_fix(sample_vertices[0], north_m=5.0, timestamp=42.0))
        state_machine.on_fix(make_fix(sample_vertices[0], north_m=5.0))

        assert len(events) == 1
        assert events[0].target_index == 0
        assert events[0].vertex_id == sample_vertices[0].id
        assert events[0].timestamp == 42.0
        assert state_machine.last_arrival == events[0]
        assert state_machine.is_near_target is True

    def test_arrival_does_not_mark_found(self, state_machine, sample_vertices, make_fix):
        """Arriving only reports; marking found is explicit."""
        state_machine.start(sample_vertices, feed_available=True)

        state_machine.on_fix(make_fix(sample_vertices[0]))

        assert state_machine.found_indices == frozenset()
        assert state_machine.current_target_index == 0

    def test_target_change_gives_fresh_arrival(self, state_machine, make_fix):
        """Standing on two coincident targets arrives at each in turn."""
        vertices = [Vertex(id=i, lat=-32.328, lng=18.826) for i in range(2)]
        events = []
        state_machine.add_arrival_listener(events.append)
        state_machine.start(vertices, feed_available=True)

        state_machine.on_fix(make_fix(vertices[0]))
        state_machine.mark_current_as_found()
        assert state_machine.is_near_target is False
        state_machine.on_fix(make_fix(vertices[1]))

        assert [e.target_index for e in events] == [0, 1]

    def test_go_to_same_index_rearms_arrival(self, state_machine, sample_vertices, make_fix):
        """Re-selecting the current target resets the near state."""
        events = []
        state_machine.add_arrival_listener(events.append)
        state_machine.start(sample_vertices, feed_available=True)

        state_machine.on_fix(make_fix(sample_vertices[0]))
        state_machine.go_to(0)
        state_machine.on_fix(make_fix(sample_vertices[0]))

        assert len(events) == 2

    def test_removed_listener_not_called(self, state_machine, sample_vertices, make_fix):
        """remove_arrival_listener stops notifications."""
        events = []
        state_machine.add_arrival_listener(events.append)
        state_machine.remove_arrival_listener(events.append)
        state_machine.start(sample_vertices, feed_available=True)

        state_machine.on_fix(make_fix(sample_vertices[0]))

        assert events == []

    def test_failing_listener_is_logged(self, state_machine, sample_vertices, make_fix, caplog):
        """A listener error is logged and later listeners still run."""
        events = []

        def broken(event):
            raise RuntimeError("map widget gone")

        state_machine.add_arrival_listener(broken)
        state_machine.add_arrival_listener(events.append)
        state_machine.start(sample_vertices, feed_available=True)

        with caplog.at_level(logging.ERROR):
            result = state_machine.on_fix(make_fix(sample_vertices[0]))

        assert result.just_arrived is True
        assert len(events) == 1
        assert "Arrival listener failed" in caplog.text

    def test_snapshot(self, state_machine, sample_vertices):
        """snapshot reflects the machine state."""
        state_machine.start(sample_vertices, feed_available=True)
        state_machine.mark_current_as_found()

        state = state_machine.snapshot()

        assert state.active is True
        assert state.found_indices == [0]
        assert state.current_target.index == 1
        assert state.progress.remaining == 2
        assert state.all_found is False
