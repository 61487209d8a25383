"""Infrastructure Layer — database, HTTP transport, timers and logging.

Invariants:
    - Infrastructure may use core/ errors and schemas, never core decision logic
    - All external failures mapped to ResearchCoreError subclasses (StorageError,
      RealtimeTransportError) at this boundary

Design Decisions:
    - Thin wrappers over raw clients: retry policy belongs to the caller or transport
"""
