"""Tribunal Schemas — thread envelope in, per-agent tribunal state out.

Invariants:
    - ThreadMessage accepts the transport's wire names ("from", "newMessages") and ignores
      unknown keys: the thread is shared and carries fields we do not model
    - AgentResponse exists at most once per agent per synchronizer (enforced by the reducer)
    - TribunalSnapshot is a read-only view; mutating it never feeds back into state

Design Decisions:
    - Aliases over renamed wire fields: "from" is a Python keyword
    - populate_by_name: producers inside this package build messages with Python names
"""

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field

from research_core.core.domain_types import AgentStatus, TribunalMode


class ThreadMessage(BaseModel):
    """One message from the shared thread (subject-tagged)."""
    model_config = ConfigDict(populate_by_name=True, extra="ignore", frozen=True)

    id: int | None = None
    subject: str = ""
    from_: str | None = Field(None, alias="from")
    created_ts: str | None = None
    reply_to: int | None = None
    body_md: str | None = None


class ThreadUpdate(BaseModel):
    """One delivered batch; may repeat or reorder earlier messages."""
    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    new_messages: list[ThreadMessage] = Field(default_factory=list, alias="newMessages")
    latest_message_id: int | None = Field(None, alias="latestMessageId")


class AgentResponse(BaseModel):
    agent_id: str
    content: str
    timestamp: datetime
    confidence: float | None = None  # fraction in [0, 1]
    disagreements: list[str] | None = None
    suggestions: list[str] | None = None


class AgentStateView(BaseModel):
    agent_id: str
    display_name: str
    status: AgentStatus
    progress: int
    max_progress: int
    response: AgentResponse | None = None


class TribunalSnapshot(BaseModel):
    thread_id: str
    mode: TribunalMode
    controls_enabled: bool
    agents: list[AgentStateView]

    @property
    def responded_count(self) -> int:
        return sum(1 for a in self.agents if a.status == AgentStatus.RESPONDED)


class TribunalControlResponse(BaseModel):
    """Outcome of an invoke/cancel: accepted is False when it was a no-op."""
    agent_id: str
    accepted: bool
    snapshot: TribunalSnapshot
