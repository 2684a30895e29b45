"""
Services Layer

The doubles scheduling engine (rotation_catalog, doubles_generator,
schedule_invariants, match_state, regeneration_engine) is pure:
- Accepts participant ids and Match values
- Returns new Match values, never mutates its inputs
- Does NOT touch the database or HTTP objects

open_play_service is the event store that persists engine output.
"""
