"""
Speedrun App - Split timing and personal best tracking core

Tracks timed attempts through an ordered list of named splits, persists every
attempt to SQLite, and compares the attempt in progress against the personal
best and the best recorded segment for each split.
"""

__version__ = "0.1.0"
__author__ = "Speedrun App Team"
