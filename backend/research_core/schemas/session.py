"""Session Schemas — the Session aggregate and its resume ledger, validated at every boundary.

Invariants:
    - primary_hypothesis_id, when set, keys an existing hypothesis card
    - every card's id equals its key in hypothesis_cards
    - HypothesisCard keeps unknown fields (extra="allow") so re-import is lossless
    - timestamps are timezone-aware UTC

Design Decisions:
    - Pydantic model_validator for the cross-field invariant: bad sessions never reach
      the store, and corrupt stored payloads surface as validation failures on load
    - CURRENT_SESSION_VERSION stamped into every session for forward-compatible import
"""

from datetime import datetime, timezone

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from research_core.core.domain_types import Phase, UILocation

CURRENT_SESSION_VERSION = 1


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


class HypothesisCard(BaseModel):
    """One hypothesis under consideration; identity by id."""
    model_config = ConfigDict(extra="allow")

    id: str = Field(min_length=1)
    statement: str
    mechanism: str | None = None
    domain: list[str] = Field(default_factory=list)
    predictions_if_true: list[str] = Field(default_factory=list)
    predictions_if_false: list[str] = Field(default_factory=list)
    impossible_if_true: list[str] = Field(default_factory=list)
    confidence: float | None = Field(None, ge=0, le=100)


class Session(BaseModel):
    """Research session aggregate — owned by SessionStore, copied by callers."""
    id: str = Field(min_length=1, max_length=200)
    phase: Phase = Phase.INTAKE
    hypothesis_cards: dict[str, HypothesisCard] = Field(default_factory=dict)
    primary_hypothesis_id: str | None = None
    research_question: str | None = Field(None, max_length=10_000)
    tags: list[str] = Field(default_factory=list)
    version: int = Field(CURRENT_SESSION_VERSION, ge=1)
    created_at: datetime = Field(default_factory=utc_now)
    updated_at: datetime = Field(default_factory=utc_now)

    @field_validator("id")
    @classmethod
    def strip_id(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("id cannot be empty or whitespace")
        return v

    @model_validator(mode="after")
    def validate_hypotheses(self):
        for key, card in self.hypothesis_cards.items():
            if card.id != key:
                raise ValueError(
                    f"hypothesis card keyed {key!r} has id {card.id!r}",
                )
        if (
            self.primary_hypothesis_id is not None
            and self.primary_hypothesis_id not in self.hypothesis_cards
        ):
            raise ValueError(
                f"primary_hypothesis_id {self.primary_hypothesis_id!r} "
                "does not match any hypothesis card",
            )
        return self

    @property
    def primary_hypothesis(self) -> HypothesisCard | None:
        if self.primary_hypothesis_id is None:
            return None
        return self.hypothesis_cards[self.primary_hypothesis_id]

    @property
    def alternative_hypotheses(self) -> list[HypothesisCard]:
        return [
            card for key, card in self.hypothesis_cards.items()
            if key != self.primary_hypothesis_id
        ]


class SessionResumeEntry(BaseModel):
    """Last UI location visited within one session."""
    location: UILocation
    visited_at: datetime


class ResumeEntryRequest(BaseModel):
    location: UILocation


class ResumeSuggestion(BaseModel):
    session_id: str
    location: UILocation
    path: str
    last_visited: SessionResumeEntry | None = None


class SessionImportResponse(BaseModel):
    session: Session
    warnings: list[str]


class SessionListResponse(BaseModel):
    session_ids: list[str]


class PhaseTransitionsResponse(BaseModel):
    """Where a session can go next, for navigation menus."""
    session_id: str
    phase: Phase
    phase_name: str
    is_final: bool
    reachable: list[Phase]
    default_next: Phase | None
    suggested_location: UILocation
