"""Phase Engine — phase → UI location mapping and the explicit transition table.

Tests cover:
    - suggested_location is total and matches the documented mapping
    - TRANSITIONS covers every phase; COMPLETE is the only final phase
    - Every default "continue" step is itself a legal transition
    - validate_phase_transition / assert_phase_transition agree
"""

import pytest

from research_core.core.domain_types import Phase, UILocation
from research_core.core.errors import PhaseTransitionError
from research_core.core.phase_engine import (
    TRANSITIONS, assert_phase_transition, can_transition, default_next_phase,
    is_final, phase_name, reachable_phases, suggested_location,
    validate_phase_transition,
)


@pytest.mark.parametrize("phase,location", [
    (Phase.INTAKE, UILocation.HYPOTHESIS),
    (Phase.SHARPENING, UILocation.HYPOTHESIS),
    (Phase.REVISION, UILocation.HYPOTHESIS),
    (Phase.LEVEL_SPLIT, UILocation.OPERATORS),
    (Phase.OBJECT_TRANSPOSE, UILocation.OPERATORS),
    (Phase.SCALE_CHECK, UILocation.OPERATORS),
    (Phase.EVIDENCE, UILocation.OPERATORS),
    (Phase.EXCLUSION_TEST, UILocation.TEST_QUEUE),
    (Phase.AGENT_DISPATCH, UILocation.AGENTS),
    (Phase.SYNTHESIS, UILocation.AGENTS),
    (Phase.COMPLETE, UILocation.BRIEF),
])
def test_suggested_location(phase, location):
    assert suggested_location(phase) == location


def test_suggested_location_accepts_raw_values():
    assert suggested_location("agent_dispatch") == UILocation.AGENTS


def test_transition_table_covers_every_phase():
    assert set(TRANSITIONS) == set(Phase)


def test_complete_is_the_only_final_phase():
    assert [p for p in Phase if is_final(p)] == [Phase.COMPLETE]
    assert default_next_phase(Phase.COMPLETE) is None


def test_no_phase_transitions_to_itself():
    for phase, targets in TRANSITIONS.items():
        assert phase not in targets


@pytest.mark.parametrize("phase", [p for p in Phase if p != Phase.COMPLETE])
def test_default_next_is_legal(phase):
    assert can_transition(phase, default_next_phase(phase))


def test_every_phase_can_reach_complete():
    reached = {Phase.INTAKE}
    frontier = [Phase.INTAKE]
    while frontier:
        for nxt in TRANSITIONS[frontier.pop()]:
            if nxt not in reached:
                reached.add(nxt)
                frontier.append(nxt)
    assert reached == set(Phase)


def test_reachable_phases_in_lifecycle_order():
    assert reachable_phases(Phase.REVISION) == [
        Phase.LEVEL_SPLIT, Phase.AGENT_DISPATCH, Phase.SYNTHESIS,
        Phase.EVIDENCE, Phase.COMPLETE,
    ]


def test_scale_check_is_skippable():
    assert can_transition(Phase.LEVEL_SPLIT, Phase.AGENT_DISPATCH)


def test_intake_cannot_jump_to_synthesis():
    err = validate_phase_transition(Phase.INTAKE, Phase.SYNTHESIS)
    assert err["status"] == "error"
    assert err["error_code"] == "INVALID_PHASE_TRANSITION"
    assert err["message"].startswith("ERROR: ")


def test_complete_is_final():
    err = validate_phase_transition(Phase.COMPLETE, Phase.REVISION)
    assert err["error_code"] == "PHASE_FINAL"


def test_self_move_is_not_an_error():
    assert validate_phase_transition(Phase.COMPLETE, Phase.COMPLETE) is None
    assert validate_phase_transition(Phase.SYNTHESIS, Phase.SYNTHESIS) is None


def test_assert_phase_transition_raises_with_both_phases():
    with pytest.raises(PhaseTransitionError) as exc_info:
        assert_phase_transition(Phase.INTAKE, Phase.COMPLETE)
    err = exc_info.value
    assert err.http_status == 400
    assert err.message == "Cannot transition to complete from intake"


def test_assert_phase_transition_allows_legal_move():
    assert_phase_transition(Phase.SYNTHESIS, Phase.REVISION)


def test_phase_names_are_human_readable():
    assert phase_name(Phase.INTAKE) == "Hypothesis Intake"
    assert all(phase_name(p) for p in Phase)
