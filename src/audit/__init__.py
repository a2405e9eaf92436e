"""Per-source audit trail recording.

This module records processing steps, dependencies and sampled data.
It derives step durations when a finished trail is requested.
"""
