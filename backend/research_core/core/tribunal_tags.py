"""Tribunal Tags — the only place thread subjects are parsed.

Invariants:
    - A subject is claimed only via TRIBUNAL[<tag>] (anywhere) or DELTA[<tag>] (at the
      start), case-insensitive
    - Tags are normalized: trimmed, lowercased, whitespace/dash runs -> "_",
      any other non [a-z0-9_] character dropped
    - Unknown tags and foreign messages yield None — never an exception
    - Everything past classify_message is typed (TribunalSignal), not text

Design Decisions:
    - Permissive edge: the thread is a shared, untrusted channel that may carry
      unrelated traffic, so non-matches are dropped silently
"""

import re
from dataclasses import dataclass

from research_core.core.agent_config import AGENT_IDS
from research_core.core.domain_types import AgentId, SignalKind
from research_core.schemas.tribunal import ThreadMessage

_TRIBUNAL_TAG = re.compile(r"TRIBUNAL\[([^\]]*)\]", re.IGNORECASE)
_DELTA_TAG = re.compile(r"^\s*DELTA\[([^\]]*)\]", re.IGNORECASE)
_SEPARATORS = re.compile(r"[\s-]+")
_DISALLOWED = re.compile(r"[^a-z0-9_]")


@dataclass(frozen=True)
class TribunalSignal:
    agent_id: AgentId
    kind: SignalKind
    message: ThreadMessage


def normalize_tag(token: str) -> str:
    token = _SEPARATORS.sub("_", token.strip().lower())
    return _DISALLOWED.sub("", token)


def extract_agent_tag(subject: str | None) -> str | None:
    """Normalized tag from a DELTA[...] or TRIBUNAL[...] subject, else None."""
    parsed = _parse_subject(subject)
    return parsed[0] if parsed else None


def classify_message(message: ThreadMessage) -> TribunalSignal | None:
    """Typed signal for a message addressed to a known agent, else None."""
    parsed = _parse_subject(message.subject)
    if parsed is None:
        return None
    tag, is_delta = parsed
    if tag not in AGENT_IDS:
        return None
    completes = is_delta or message.reply_to is not None
    kind = SignalKind.COMPLETION if completes else SignalKind.PING
    return TribunalSignal(AgentId(tag), kind, message)


def strip_tag_prefix(subject: str) -> str:
    """Subject text after its tag and an optional ':' separator."""
    match = _DELTA_TAG.match(subject) or _TRIBUNAL_TAG.search(subject)
    if not match:
        return subject.strip()
    return subject[match.end():].lstrip(" :").strip()


def _parse_subject(subject: str | None) -> tuple[str, bool] | None:
    if not isinstance(subject, str) or not subject:
        return None
    delta = _DELTA_TAG.match(subject)
    if delta:
        tag = normalize_tag(delta.group(1))
        return (tag, True) if tag else None
    tribunal = _TRIBUNAL_TAG.search(subject)
    if tribunal:
        tag = normalize_tag(tribunal.group(1))
        return (tag, False) if tag else None
    return None
