"""Agent Configuration — the fixed tribunal roster, loaded once and never mutated.

Invariants:
    - AGENTS is a read-only mapping built at import time; AgentConfig is frozen
    - Agent ids are already in normalized tag form ([a-z0-9_]+)
    - Iteration order of AGENTS is the display order
"""

from dataclasses import dataclass
from types import MappingProxyType
from typing import Mapping

from research_core.core.domain_types import AgentId


@dataclass(frozen=True)
class AgentConfig:
    id: AgentId
    display_name: str
    role: str
    model_label: str
    description: str


_ROSTER = (
    AgentConfig(
        AgentId("devils_advocate"), "Devil's Advocate", "Challenger", "Claude Opus",
        "Finds holes, steelmans alternatives, challenges assumptions",
    ),
    AgentConfig(
        AgentId("experiment_designer"), "Experiment Designer", "Methodologist", "Claude Opus",
        "Proposes concrete, feasible study protocols",
    ),
    AgentConfig(
        AgentId("brenner_channeler"), "Brenner Channeler", "Mentor", "Claude Opus",
        "Channels Sydney Brenner's voice and thinking style",
    ),
    AgentConfig(
        AgentId("synthesis"), "Synthesis", "Integrator", "Claude Opus",
        "Integrates agent outputs into a coherent assessment",
    ),
    AgentConfig(
        AgentId("hypothesis_generator"), "Hypothesis Generator", "Generator", "GPT-5.2",
        "Generates hypotheses by hunting paradoxes and importing cross-domain patterns",
    ),
    AgentConfig(
        AgentId("test_designer"), "Test Designer", "Designer", "Claude Opus",
        "Designs discriminative tests with potency controls",
    ),
    AgentConfig(
        AgentId("adversarial_critic"), "Adversarial Critic", "Critic", "Gemini 3",
        "Attacks the framing, checks scale constraints, quarantines anomalies",
    ),
)

AGENTS: Mapping[AgentId, AgentConfig] = MappingProxyType({a.id: a for a in _ROSTER})
AGENT_IDS: frozenset[AgentId] = frozenset(AGENTS)


def get_agent(agent_id: str) -> AgentConfig | None:
    return AGENTS.get(AgentId(agent_id))


def is_agent_id(value: str) -> bool:
    return value in AGENT_IDS
