"""
Utility functions module.

Time semantics:
- Durations are integer nanoseconds everywhere in the core
- The wall clock is read on demand through an injectable nanosecond clock
- Persisted timestamps are ISO 8601 strings carrying a UTC offset
"""
