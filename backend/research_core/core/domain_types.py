"""Domain Types — rich types that replace bare primitives across the codebase.

Invariants:
    - SessionId, ThreadId, AgentId wrap str — never pass raw ids through domain logic untyped
    - All valid states encoded as Enums — no raw string matching outside the parsing edge
    - Phase member order IS the canonical lifecycle order

Design Decisions:
    - NewType over dataclass wrappers: zero runtime cost, full type-checker support
    - str Enums: serialize to JSON without custom encoders (ADR: wire format is JSON)
"""

from enum import Enum
from typing import NewType


# ─── Identity Types ──────────────────────────────────────────────

SessionId = NewType("SessionId", str)
ThreadId = NewType("ThreadId", str)
AgentId = NewType("AgentId", str)
ClientId = NewType("ClientId", str)


# ─── Session lifecycle ───────────────────────────────────────────

class Phase(str, Enum):
    """Fixed, ordered research-session phases."""
    INTAKE = "intake"
    SHARPENING = "sharpening"
    LEVEL_SPLIT = "level_split"
    EXCLUSION_TEST = "exclusion_test"
    OBJECT_TRANSPOSE = "object_transpose"
    SCALE_CHECK = "scale_check"
    AGENT_DISPATCH = "agent_dispatch"
    SYNTHESIS = "synthesis"
    EVIDENCE = "evidence"
    REVISION = "revision"
    COMPLETE = "complete"


class UILocation(str, Enum):
    """Session sub-pages a user can resume at."""
    OVERVIEW = "overview"
    HYPOTHESIS = "hypothesis"
    OPERATORS = "operators"
    TEST_QUEUE = "test-queue"
    AGENTS = "agents"
    EVIDENCE = "evidence"
    BRIEF = "brief"


class ExportFormat(str, Enum):
    JSON = "json"
    MARKDOWN = "markdown"


# ─── Evidence pack ───────────────────────────────────────────────

class EvidenceType(str, Enum):
    PAPER = "paper"
    PREPRINT = "preprint"
    DATASET = "dataset"
    EXPERIMENT = "experiment"
    OBSERVATION = "observation"
    PRIOR_SESSION = "prior_session"
    EXPERT_OPINION = "expert_opinion"
    CODE_ARTIFACT = "code_artifact"


class AccessMethod(str, Enum):
    URL = "url"
    DOI = "doi"
    FILE = "file"
    SESSION = "session"
    MANUAL = "manual"


# ─── Tribunal ────────────────────────────────────────────────────

class AgentStatus(str, Enum):
    """Per-agent tribunal status. RESPONDED is terminal."""
    IDLE = "idle"
    THINKING = "thinking"
    RESPONDED = "responded"


class SignalKind(str, Enum):
    """What a claimed thread message means for its agent."""
    PING = "ping"
    COMPLETION = "completion"


class TribunalMode(str, Enum):
    """Which producer feeds a synchronizer — chosen once, at construction."""
    LIVE = "live"
    MOCK = "mock"
