"""Core Layer — pure domain logic, no IO, no async, no DB.

Invariants:
    - No module in core/ imports from services/, infrastructure/, schemas/, or db/
    - All functions are pure and deterministic (battle math takes its RNG as an argument)

Design Decisions:
    - Functional core separated from imperative shell
"""
