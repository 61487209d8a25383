"""Evidence Pack Validation — strict, fail-fast structural gate for external documents.

Invariants:
    - PURE: no IO, no async, never mutates or copies its input
    - Raises EvidencePackValidationError on the FIRST violation, in a fixed order:
      top-level fields, then records in array order, then each record's excerpts
    - Messages are identifier-qualified: "record at index i" until the record id is
      known, "record <id>" afterwards
    - On success the very same object is returned (identity, not equality)

Design Decisions:
    - Hand-ordered checks over a schema library: the error ORDER and wording are part
      of the contract, and the result must be the caller's own dict
    - All-or-nothing: callers never see a partially trusted pack
"""

from typing import Any, cast

from research_core.core.domain_types import AccessMethod, EvidenceType
from research_core.core.errors import EvidencePackValidationError
from research_core.core.evidence_types import EvidencePack

EVIDENCE_TYPES: tuple[str, ...] = tuple(t.value for t in EvidenceType)
ACCESS_METHODS: tuple[str, ...] = tuple(m.value for m in AccessMethod)

_TOP_LEVEL_STRINGS = ("version", "thread_id", "created_at", "updated_at")
_RECORD_STRINGS_BEFORE_TYPE = ("id",)
_RECORD_STRINGS_AFTER_TYPE = ("title", "source")
_RECORD_STRINGS_AFTER_ACCESS = ("imported_at", "imported_by", "relevance")
_EXCERPT_STRINGS = ("anchor", "text")


def validate_evidence_pack(raw: object) -> EvidencePack:
    """Validate an untrusted object as an EvidencePack and return it unchanged."""
    if not isinstance(raw, dict):
        raise EvidencePackValidationError(
            "Evidence pack must be a JSON object", field="<root>",
        )

    for name in _TOP_LEVEL_STRINGS:
        _require_str(raw, name, "Evidence pack")
    if not _is_number(raw.get("next_id")):
        raise EvidencePackValidationError(
            "Evidence pack field 'next_id' must be a number", field="next_id",
        )
    records = raw.get("records")
    if not isinstance(records, list):
        raise EvidencePackValidationError(
            "Evidence pack field 'records' must be an array", field="records",
        )

    for index, record in enumerate(records):
        _validate_record(record, index)

    return cast(EvidencePack, raw)


# --- Records ------------------------------------------------------------------

def _validate_record(record: Any, index: int) -> None:
    label = f"Evidence record at index {index}"
    if not isinstance(record, dict):
        raise EvidencePackValidationError(f"{label} must be an object", field="records")

    for name in _RECORD_STRINGS_BEFORE_TYPE:
        _require_str(record, name, label)
    label = f"Evidence record {record['id']}"

    _require_enum(record, "type", EVIDENCE_TYPES, label)
    for name in _RECORD_STRINGS_AFTER_TYPE:
        _require_str(record, name, label)
    _require_enum(record, "access_method", ACCESS_METHODS, label)
    for name in _RECORD_STRINGS_AFTER_ACCESS:
        _require_str(record, name, label)

    if not isinstance(record.get("verified"), bool):
        raise EvidencePackValidationError(
            f"{label}: field 'verified' must be a boolean", field="verified",
        )
    if not isinstance(record.get("key_findings"), list):
        raise EvidencePackValidationError(
            f"{label}: field 'key_findings' must be an array", field="key_findings",
        )
    excerpts = record.get("excerpts")
    if not isinstance(excerpts, list):
        raise EvidencePackValidationError(
            f"{label}: field 'excerpts' must be an array", field="excerpts",
        )

    for excerpt_index, excerpt in enumerate(excerpts):
        _validate_excerpt(excerpt, f"{label} excerpt at index {excerpt_index}")


def _validate_excerpt(excerpt: Any, label: str) -> None:
    if not isinstance(excerpt, dict):
        raise EvidencePackValidationError(f"{label} must be an object", field="excerpts")
    for name in _EXCERPT_STRINGS:
        _require_str(excerpt, name, label)
    if not isinstance(excerpt.get("verbatim"), bool):
        raise EvidencePackValidationError(
            f"{label}: field 'verbatim' must be a boolean", field="verbatim",
        )


# --- Helpers ------------------------------------------------------------------

def _require_str(obj: dict, name: str, label: str) -> None:
    if not isinstance(obj.get(name), str):
        sep = "" if label == "Evidence pack" else ":"
        raise EvidencePackValidationError(
            f"{label}{sep} field '{name}' must be a string", field=name,
        )


def _require_enum(obj: dict, name: str, allowed: tuple[str, ...], label: str) -> None:
    value = obj.get(name)
    if value not in allowed:
        raise EvidencePackValidationError(
            f"{label}: invalid {name} {value!r} (expected one of: {', '.join(allowed)})",
            field=name,
        )


def _is_number(value: object) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)
