"""Evidence Pack Types — structural types for the externally authored evidence document.

Invariants:
    - Shapes mirror the on-disk JSON exactly (snake_case keys, no renaming)
    - Only validate_evidence_pack may narrow an untrusted object to EvidencePack

Design Decisions:
    - TypedDict over pydantic models: the validator returns the caller's own dict,
      so the type must describe a plain dict rather than a parsed copy
"""

from typing import NotRequired, TypedDict


class EvidenceExcerpt(TypedDict):
    anchor: str
    text: str
    verbatim: bool
    location: NotRequired[str]
    note: NotRequired[str]


class EvidenceRecord(TypedDict):
    id: str
    type: str
    title: str
    source: str
    access_method: str
    imported_at: str
    imported_by: str
    relevance: str
    verified: bool
    key_findings: list[str]
    excerpts: list[EvidenceExcerpt]
    authors: NotRequired[list[str]]
    date: NotRequired[str]
    verification_notes: NotRequired[str]
    supports: NotRequired[list[str]]
    refutes: NotRequired[list[str]]
    informs: NotRequired[list[str]]


class EvidencePack(TypedDict):
    version: str
    thread_id: str
    created_at: str
    updated_at: str
    next_id: int
    records: list[EvidenceRecord]
