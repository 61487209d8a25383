"""Resume Location — which session sub-page to suggest, and its path.

Invariants:
    - PURE: no IO
    - The last visited location wins unless it is the generic overview
    - Without a usable ledger entry, the phase decides (suggested_location)
"""

from urllib.parse import quote

from research_core.core.domain_types import Phase, UILocation
from research_core.core.phase_engine import suggested_location
from research_core.schemas.session import SessionResumeEntry


def choose_resume_location(
    entry: SessionResumeEntry | None, phase: Phase,
) -> UILocation:
    if entry is not None and entry.location != UILocation.OVERVIEW:
        return entry.location
    return suggested_location(phase)


def build_session_path(session_id: str, location: UILocation) -> str:
    base = f"/sessions/{quote(session_id, safe='')}"
    location = UILocation(location)
    if location == UILocation.OVERVIEW:
        return base
    return f"{base}/{location.value}"
