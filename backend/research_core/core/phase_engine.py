"""Phase Engine — where to resume a session, and which phase moves are legal.

Invariants:
    - All functions are PURE: no IO, no async, no side effects
    - suggested_location is total over Phase
    - TRANSITIONS is the single source of truth for legal moves; COMPLETE is final
    - Self-moves are not transitions (staying in a phase needs no validation)

Design Decisions:
    - Explicit table over UI-location inference: the location map says where a phase
      is worked on, not where it may go next
    - Return error dict (not exception) from validate_phase_transition: matches the
      check_* family; assert_phase_transition raises for shell callers
"""

from types import MappingProxyType
from typing import Mapping

from research_core.core.domain_types import Phase, UILocation
from research_core.core.errors import PhaseTransitionError


# --- Phase -> UI location -----------------------------------------------------

_LOCATION_BY_PHASE: Mapping[Phase, UILocation] = MappingProxyType({
    Phase.INTAKE: UILocation.HYPOTHESIS,
    Phase.SHARPENING: UILocation.HYPOTHESIS,
    Phase.REVISION: UILocation.HYPOTHESIS,
    Phase.EXCLUSION_TEST: UILocation.TEST_QUEUE,
    Phase.AGENT_DISPATCH: UILocation.AGENTS,
    Phase.SYNTHESIS: UILocation.AGENTS,
    Phase.COMPLETE: UILocation.BRIEF,
})


def suggested_location(phase: Phase) -> UILocation:
    """UI location a user should resume at for the given phase."""
    return _LOCATION_BY_PHASE.get(Phase(phase), UILocation.OPERATORS)


# --- Transition table ---------------------------------------------------------

TRANSITIONS: Mapping[Phase, frozenset[Phase]] = MappingProxyType({
    Phase.INTAKE: frozenset({Phase.SHARPENING}),
    Phase.SHARPENING: frozenset({
        Phase.LEVEL_SPLIT, Phase.EXCLUSION_TEST, Phase.AGENT_DISPATCH,
    }),
    Phase.LEVEL_SPLIT: frozenset({
        Phase.SHARPENING, Phase.EXCLUSION_TEST, Phase.OBJECT_TRANSPOSE,
        Phase.SCALE_CHECK, Phase.AGENT_DISPATCH,
    }),
    Phase.EXCLUSION_TEST: frozenset({
        Phase.LEVEL_SPLIT, Phase.OBJECT_TRANSPOSE, Phase.SCALE_CHECK,
        Phase.AGENT_DISPATCH,
    }),
    Phase.OBJECT_TRANSPOSE: frozenset({
        Phase.EXCLUSION_TEST, Phase.SCALE_CHECK, Phase.AGENT_DISPATCH,
    }),
    Phase.SCALE_CHECK: frozenset({Phase.OBJECT_TRANSPOSE, Phase.AGENT_DISPATCH}),
    Phase.AGENT_DISPATCH: frozenset({
        Phase.SCALE_CHECK, Phase.SYNTHESIS, Phase.EVIDENCE,
    }),
    Phase.SYNTHESIS: frozenset({
        Phase.AGENT_DISPATCH, Phase.EVIDENCE, Phase.REVISION, Phase.COMPLETE,
    }),
    Phase.EVIDENCE: frozenset({Phase.SYNTHESIS, Phase.REVISION, Phase.COMPLETE}),
    Phase.REVISION: frozenset({
        Phase.EVIDENCE, Phase.LEVEL_SPLIT, Phase.AGENT_DISPATCH,
        Phase.SYNTHESIS, Phase.COMPLETE,
    }),
    Phase.COMPLETE: frozenset(),
})

_DEFAULT_NEXT: Mapping[Phase, Phase] = MappingProxyType({
    Phase.INTAKE: Phase.SHARPENING,
    Phase.SHARPENING: Phase.LEVEL_SPLIT,
    Phase.LEVEL_SPLIT: Phase.EXCLUSION_TEST,
    Phase.EXCLUSION_TEST: Phase.OBJECT_TRANSPOSE,
    Phase.OBJECT_TRANSPOSE: Phase.SCALE_CHECK,
    Phase.SCALE_CHECK: Phase.AGENT_DISPATCH,
    Phase.AGENT_DISPATCH: Phase.SYNTHESIS,
    Phase.SYNTHESIS: Phase.EVIDENCE,
    Phase.EVIDENCE: Phase.COMPLETE,
    Phase.REVISION: Phase.EVIDENCE,
})

_PHASE_NAMES: Mapping[Phase, str] = MappingProxyType({
    Phase.INTAKE: "Hypothesis Intake",
    Phase.SHARPENING: "Sharpening",
    Phase.LEVEL_SPLIT: "Level Split",
    Phase.EXCLUSION_TEST: "Exclusion Test",
    Phase.OBJECT_TRANSPOSE: "Object Transpose",
    Phase.SCALE_CHECK: "Scale Check",
    Phase.AGENT_DISPATCH: "Agent Dispatch",
    Phase.SYNTHESIS: "Synthesis",
    Phase.EVIDENCE: "Evidence Gathering",
    Phase.REVISION: "Revision",
    Phase.COMPLETE: "Complete",
})


def can_transition(current: Phase, target: Phase) -> bool:
    return Phase(target) in TRANSITIONS[Phase(current)]


def reachable_phases(current: Phase) -> list[Phase]:
    """Legal targets from current, in lifecycle order."""
    allowed = TRANSITIONS[Phase(current)]
    return [p for p in Phase if p in allowed]


def default_next_phase(current: Phase) -> Phase | None:
    """Next phase for a plain "continue" action; None once complete."""
    return _DEFAULT_NEXT.get(Phase(current))


def is_final(phase: Phase) -> bool:
    return not TRANSITIONS[Phase(phase)]


def phase_name(phase: Phase) -> str:
    return _PHASE_NAMES[Phase(phase)]


def validate_phase_transition(current: Phase, target: Phase) -> dict | None:
    """Error dict if current -> target is illegal, None otherwise."""
    current, target = Phase(current), Phase(target)
    if current == target:
        return None
    if is_final(current):
        return _error(
            "PHASE_FINAL",
            f"Cannot transition from final phase {current.value}.",
        )
    if not can_transition(current, target):
        return _error(
            "INVALID_PHASE_TRANSITION",
            f"Cannot transition to {target.value} from {current.value}.",
        )
    return None


def assert_phase_transition(current: Phase, target: Phase) -> None:
    """Raise PhaseTransitionError when validate_phase_transition fails."""
    if validate_phase_transition(current, target) is not None:
        raise PhaseTransitionError(Phase(current).value, Phase(target).value)


# --- Helper -------------------------------------------------------------------

def _error(code: str, message: str) -> dict:
    """Construct a standard error dict."""
    return {
        "status": "error",
        "error_code": code,
        "message": f"ERROR: {message}",
    }
