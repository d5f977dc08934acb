"""
Settings for the speedrun core.

Defaults are overridden by an optional ``speedrun.yaml`` settings file, which
is in turn overridden by explicit per-call overrides.
"""
