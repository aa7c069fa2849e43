"""Infrastructure Layer - database sessions, judge client, structured logging.

Invariants:
    - Infrastructure never imports core transition logic, only core types and errors
    - All external calls wrapped with timeout/error mapping
"""
