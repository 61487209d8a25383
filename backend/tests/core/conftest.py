"""Core test fixtures — canonical evidence pack documents."""

import pytest

from tests.core.evidence_factory import make_excerpt, make_pack, make_record


@pytest.fixture
def two_record_pack() -> dict:
    """One verified record with two excerpts, one unverified record with none."""
    return make_pack([
        make_record(
            "EV-001",
            excerpts=[make_excerpt("E1"), make_excerpt("E2", verbatim=False, location="p. 3")],
        ),
        make_record(
            "EV-002", type="dataset", source="https://data.example.org/rii",
            access_method="url", verified=False, supports=["H1"],
        ),
    ])
