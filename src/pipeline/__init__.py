"""Source processing pipeline.

This module orders, validates and evaluates registered sources.
It assembles finished records with counters for one scenario run.
"""
