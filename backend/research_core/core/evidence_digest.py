"""Evidence Digest — summaries, ids, paths and Markdown rendering for validated packs.

Invariants:
    - All functions are PURE and deterministic (same pack -> same output, byte for byte)
    - Inputs are assumed already validated (validate_evidence_pack) — no re-checking here
    - Record and excerpt order is preserved exactly as authored
    - Citation anchors are "<record id>#<excerpt anchor>"

Design Decisions:
    - Separate from validation: the gate stays minimal, presentation lives here
    - Frozen dataclass summary: immutable value, trivially comparable in tests
"""

import re
from dataclasses import dataclass, field
from pathlib import PurePosixPath

from research_core.core.domain_types import AccessMethod
from research_core.core.evidence_types import EvidencePack, EvidenceRecord

_UNSAFE_THREAD_CHARS = re.compile(r"[^A-Za-z0-9\-_.]")


@dataclass(frozen=True)
class EvidencePackSummary:
    total_records: int
    verified: int
    unverified: int
    total_excerpts: int
    by_type: dict[str, int] = field(default_factory=dict)


def summarize_evidence_pack(pack: EvidencePack) -> EvidencePackSummary:
    records = pack["records"]
    verified = sum(1 for r in records if r["verified"])
    by_type: dict[str, int] = {}
    for rec in records:
        by_type[rec["type"]] = by_type.get(rec["type"], 0) + 1
    return EvidencePackSummary(
        total_records=len(records),
        verified=verified,
        unverified=len(records) - verified,
        total_excerpts=sum(len(r["excerpts"]) for r in records),
        by_type=by_type,
    )


def format_evidence_id(n: int) -> str:
    """1 -> EV-001; numbers past 999 keep all their digits."""
    return f"EV-{n:03d}"


def infer_access_method(source: str) -> AccessMethod:
    if source.startswith(("doi:", "https://doi.org/")):
        return AccessMethod.DOI
    if source.startswith(("http://", "https://")):
        return AccessMethod.URL
    if source.startswith(("file://", "/", "./")):
        return AccessMethod.FILE
    if source.startswith("session://"):
        return AccessMethod.SESSION
    return AccessMethod.MANUAL


def sanitize_thread_id(thread_id: str) -> str:
    return _UNSAFE_THREAD_CHARS.sub("_", thread_id)


def evidence_pack_path(root: str, thread_id: str) -> PurePosixPath:
    """Conventional artifact location of a thread's evidence pack."""
    return PurePosixPath(root) / "artifacts" / sanitize_thread_id(thread_id) / "evidence.json"


def citation_anchor(record: EvidenceRecord, anchor: str) -> str:
    return f"{record['id']}#{anchor}"


# --- Markdown -----------------------------------------------------------------

def escape_table_value(value: str) -> str:
    return value.replace("|", "\\|").replace("\n", " ")


def render_evidence_markdown(pack: EvidencePack) -> str:
    lines = [
        f"# Evidence Pack: {pack['thread_id']}",
        "",
        f"> Created: {pack['created_at']}",
        f"> Updated: {pack['updated_at']}",
        f"> Records: {len(pack['records'])}",
        "",
        "---",
    ]
    for rec in pack["records"]:
        lines.extend(_render_record(rec))
        lines.append("---")
    return "\n".join(lines)


def _render_record(rec: EvidenceRecord) -> list[str]:
    lines = [
        "",
        f"## {rec['id']}: {escape_table_value(rec['title'])}",
        "",
        "| Field | Value |",
        "|-------|-------|",
        f"| Type | {rec['type']} |",
    ]
    if rec.get("authors"):
        lines.append(f"| Authors | {escape_table_value('; '.join(rec['authors']))} |")
    if rec.get("date"):
        lines.append(f"| Date | {escape_table_value(rec['date'])} |")
    lines.append(f"| Source | {escape_table_value(rec['source'])} |")

    verified = "No"
    if rec["verified"]:
        notes = rec.get("verification_notes")
        verified = f"Yes ({escape_table_value(notes)})" if notes else "Yes"
    lines.append(f"| Verified | {verified} |")

    for key, title in (("supports", "Supports"), ("refutes", "Refutes"), ("informs", "Informs")):
        values = rec.get(key)
        if values:
            lines.append(f"| {title} | {escape_table_value(', '.join(values))} |")

    lines += ["", f"**Relevance**: {rec['relevance']}", ""]

    if rec["key_findings"]:
        lines.append("**Key Findings**:")
        lines.extend(f"- {finding}" for finding in rec["key_findings"])
        lines.append("")

    if rec["excerpts"]:
        lines += ["### Excerpts", ""]
        for ex in rec["excerpts"]:
            loc = f", {ex['location']}" if ex.get("location") else ""
            kind = "verbatim" if ex["verbatim"] else "paraphrased"
            lines.append(f"**{citation_anchor(rec, ex['anchor'])}** ({kind}{loc}):")
            lines.extend(f"> {text_line}" for text_line in ex["text"].split("\n"))
            if ex.get("note"):
                lines.append(">")
                lines.extend(f"> *{note_line}*" for note_line in ex["note"].split("\n"))
            lines.append("")
    return lines
