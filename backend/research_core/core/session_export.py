"""Session Export — versioned JSON envelope, checksum, Markdown rendering, and import parsing.

Invariants:
    - PURE: the exported_at timestamp is passed in, never read from a clock here
    - JSON export round-trips: parse_session_export(build_json_export(s)) yields s
    - Checksum is SHA-256 over the key-sorted, compact JSON of the session
    - Markdown export is one-way (human-readable, lossy)
    - Import never trusts the payload: malformed input raises SessionImportError,
      recoverable oddities become warnings

Design Decisions:
    - Envelope format tag "brenner-session-v1": files written by the CLI collaborator use it too
    - Checksum mismatch is a warning, not an error: hand-edited exports stay importable
"""

import hashlib
import json
from dataclasses import dataclass, field
from datetime import datetime

from pydantic import ValidationError

from research_core.core.domain_types import ExportFormat
from research_core.core.errors import SessionImportError
from research_core.schemas.session import CURRENT_SESSION_VERSION, HypothesisCard, Session

EXPORT_FORMAT_TAG = "brenner-session-v1"

_MEDIA_TYPES = {
    ExportFormat.JSON: "application/json",
    ExportFormat.MARKDOWN: "text/markdown",
}
_EXTENSIONS = {ExportFormat.JSON: "json", ExportFormat.MARKDOWN: "md"}


@dataclass(frozen=True)
class ExportBlob:
    content: bytes
    media_type: str
    filename: str


@dataclass
class SessionImportResult:
    session: Session
    warnings: list[str] = field(default_factory=list)


# --- Export -------------------------------------------------------------------

def render_export(session: Session, fmt: ExportFormat, exported_at: datetime) -> ExportBlob:
    fmt = ExportFormat(fmt)
    if fmt == ExportFormat.MARKDOWN:
        text = render_session_markdown(session)
    else:
        text = build_json_export(session, exported_at)
    return ExportBlob(
        content=text.encode("utf-8"),
        media_type=_MEDIA_TYPES[fmt],
        filename=f"{session.id}.{_EXTENSIONS[fmt]}",
    )


def build_json_export(session: Session, exported_at: datetime) -> str:
    payload = {
        "format": EXPORT_FORMAT_TAG,
        "exported_at": exported_at.isoformat(),
        "session": session.model_dump(mode="json"),
        "checksum": session_checksum(session),
    }
    return json.dumps(payload, indent=2, ensure_ascii=False)


def session_checksum(session: Session) -> str:
    return _checksum(session.model_dump(mode="json"))


def _checksum(data: dict) -> str:
    stable = json.dumps(data, sort_keys=True, separators=(",", ":"), ensure_ascii=False)
    return hashlib.sha256(stable.encode("utf-8")).hexdigest()


# --- Import -------------------------------------------------------------------

def parse_session_export(content: bytes | str) -> SessionImportResult:
    """Parse an exported JSON file back into a Session, collecting warnings."""
    try:
        parsed = json.loads(content)
    except (json.JSONDecodeError, UnicodeDecodeError):
        raise SessionImportError("file is not valid JSON")
    if not isinstance(parsed, dict):
        raise SessionImportError("malformed export payload")

    warnings: list[str] = []
    fmt = parsed.get("format")
    if fmt != EXPORT_FORMAT_TAG:
        label = fmt if isinstance(fmt, str) and fmt else "missing"
        warnings.append(f'Unexpected export format "{label}"; attempting to import as v1.')

    raw_session = parsed.get("session")
    if not isinstance(raw_session, dict):
        raise SessionImportError("missing or invalid session payload")
    try:
        session = Session.model_validate(raw_session)
    except ValidationError as e:
        raise SessionImportError(f"invalid session payload ({e.error_count()} error(s))")

    if not isinstance(parsed.get("exported_at"), str):
        warnings.append("Export timestamp missing or invalid.")

    checksum = parsed.get("checksum")
    if not isinstance(checksum, str) or not checksum:
        warnings.append("Checksum missing; integrity could not be verified.")
    elif checksum != session_checksum(session):
        warnings.append("Checksum mismatch; session data may be corrupted or modified.")

    if session.version > CURRENT_SESSION_VERSION:
        warnings.append(
            f"Session schema version {session.version} is newer than "
            f"supported ({CURRENT_SESSION_VERSION}).",
        )
    return SessionImportResult(session=session, warnings=warnings)


# --- Markdown -----------------------------------------------------------------

def render_session_markdown(session: Session) -> str:
    lines = [
        f"# Brenner Loop Session {session.id}",
        "",
        "## Metadata",
        f"- ID: {session.id}",
        f"- Phase: {session.phase.value}",
        f"- Created: {session.created_at.isoformat()}",
        f"- Updated: {session.updated_at.isoformat()}",
    ]
    if session.research_question:
        lines.append(f"- Research Question: {session.research_question}")
    if session.tags:
        lines.append(f"- Tags: {', '.join(session.tags)}")

    lines += ["", "## Hypotheses"]
    primary = session.primary_hypothesis
    if primary is not None:
        lines += ["", "### Primary Hypothesis"]
        lines.extend(_render_hypothesis(primary))

    alternatives = session.alternative_hypotheses
    if alternatives:
        lines += ["", "### Alternative Hypotheses"]
        for card in alternatives:
            lines += ["", f"#### {card.id}"]
            lines.extend(_render_hypothesis(card))

    if primary is None and not alternatives:
        lines += ["", "_No hypotheses recorded._"]
    lines.append("")
    return "\n".join(lines)


def _render_hypothesis(card: HypothesisCard) -> list[str]:
    lines = [f"- ID: {card.id}", f"- Statement: {card.statement}"]
    if card.mechanism:
        lines.append(f"- Mechanism: {card.mechanism}")
    if card.domain:
        lines.append(f"- Domain: {', '.join(card.domain)}")
    if card.confidence is not None:
        lines.append(f"- Confidence: {card.confidence:g}%")
    if card.predictions_if_true:
        lines.append(f"- Predictions (if true): {' | '.join(card.predictions_if_true)}")
    if card.predictions_if_false:
        lines.append(f"- Predictions (if false): {' | '.join(card.predictions_if_false)}")
    if card.impossible_if_true:
        lines.append(f"- Falsifiers: {' | '.join(card.impossible_if_true)}")
    return lines
