"""Evidence Routes — validate submitted evidence packs and serve stored ones.

Invariants:
    - Nothing is accepted that validate_evidence_pack rejects; the 400 names the first
      violation only
    - Stored packs are read from <artifacts_root>/artifacts/<sanitized thread>/evidence.json
      and validated on every read (the file is an external document)
    - A stored pack that cannot be read or decoded is a 400 EVIDENCE_PACK_INVALID,
      never an unhandled 500
"""

import asyncio
import json
import logging
from pathlib import Path
from typing import Any

from fastapi import APIRouter, Body, Depends, Query
from fastapi.responses import PlainTextResponse

from research_core.config import Settings, get_settings
from research_core.core.domain_types import ExportFormat
from research_core.core.errors import ErrorContext, EvidencePackValidationError, ResourceNotFoundError
from research_core.core.evidence_digest import (
    evidence_pack_path, render_evidence_markdown, summarize_evidence_pack,
)
from research_core.core.evidence_types import EvidencePack
from research_core.core.validate_evidence_pack import validate_evidence_pack
from research_core.schemas.evidence import EvidencePackResponse, EvidenceSummaryResponse

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api/v1/evidence", tags=["evidence"])


def _summary_response(pack: EvidencePack) -> EvidenceSummaryResponse:
    summary = summarize_evidence_pack(pack)
    return EvidenceSummaryResponse(
        thread_id=pack["thread_id"],
        total_records=summary.total_records,
        verified=summary.verified,
        unverified=summary.unverified,
        total_excerpts=summary.total_excerpts,
        by_type=summary.by_type,
    )


@router.post("/validate", response_model=EvidenceSummaryResponse)
async def validate_pack(payload: Any = Body(...)):
    """Validate an evidence pack document; 400 with the first violation on failure."""
    pack = validate_evidence_pack(payload)
    return _summary_response(pack)


@router.get("/{thread_id}")
async def get_pack(
    thread_id: str,
    format: ExportFormat = Query(ExportFormat.JSON),
    settings: Settings = Depends(get_settings),
):
    """Load a thread's stored evidence pack as JSON (with summary) or Markdown."""
    path = Path(str(evidence_pack_path(settings.artifacts_root, thread_id)))
    pack = validate_evidence_pack(await _read_pack(path, thread_id))
    if format == ExportFormat.MARKDOWN:
        return PlainTextResponse(render_evidence_markdown(pack), media_type="text/markdown")
    return EvidencePackResponse(summary=_summary_response(pack), pack=dict(pack))


async def _read_pack(path: Path, thread_id: str) -> object:
    ctx = ErrorContext(thread_id=thread_id)
    try:
        text = await asyncio.to_thread(path.read_text, encoding="utf-8")
    except FileNotFoundError:
        raise ResourceNotFoundError("Evidence pack", thread_id, ctx)
    except UnicodeDecodeError as e:
        logger.warning(f"Evidence pack is not UTF-8: {e.reason}", extra={"thread_id": thread_id})
        raise EvidencePackValidationError("Evidence pack is not valid UTF-8", "<root>", ctx)
    except OSError as e:
        logger.warning(
            f"Evidence pack failed to load: {type(e).__name__}", extra={"thread_id": thread_id},
        )
        raise EvidencePackValidationError("Evidence pack failed to load", "<root>", ctx)
    try:
        return json.loads(text)
    except json.JSONDecodeError as e:
        logger.warning(f"Evidence pack is not JSON: {e.msg}", extra={"thread_id": thread_id})
        raise EvidencePackValidationError("Evidence pack is not valid JSON", "<root>", ctx)
