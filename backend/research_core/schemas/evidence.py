"""Evidence Schemas — HTTP views over validated evidence packs.

Invariants:
    - Responses are built only from packs that passed validate_evidence_pack
    - The pack itself travels as an opaque dict: its shape is owned by the validator
"""

from typing import Any

from pydantic import BaseModel, Field


class EvidenceSummaryResponse(BaseModel):
    thread_id: str
    total_records: int
    verified: int
    unverified: int
    total_excerpts: int
    by_type: dict[str, int] = Field(default_factory=dict)


class EvidencePackResponse(BaseModel):
    summary: EvidenceSummaryResponse
    pack: dict[str, Any]
