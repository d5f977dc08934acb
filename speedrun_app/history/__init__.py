"""
History aggregation module.

Read-only queries deriving the personal best and best segments from stored
run history.
"""
