"""
Data models and parsing module.

Defines the persisted run/split records, the configuration snapshot, and the
parsing of external configuration import documents.
"""
