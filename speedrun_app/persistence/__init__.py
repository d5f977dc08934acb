"""
Persistence module.

SQLite-backed storage for configuration, split names and run history.
"""
