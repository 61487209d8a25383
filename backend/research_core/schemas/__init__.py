"""Pydantic Schemas — session aggregate, tribunal envelopes and HTTP views.

Invariants:
    - Schemas validate at system boundary (stored payloads, wire messages, API bodies)
    - Domain types from core/ used for enum fields

Design Decisions:
    - Separate from models: schemas are contracts, models are persistence
"""
