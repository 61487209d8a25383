"""Services Layer — async orchestration around the pure core.

Invariants:
    - Services depend on core Protocols (KeyValueStore, Scheduler, RealtimeSource),
      never on concrete infrastructure, except the registry's RealtimeClient wiring
    - All IO happens here or below; decisions are delegated to core/

Design Decisions:
    - One module per component: store, resume tracker, producers, synchronizer, registry
"""
