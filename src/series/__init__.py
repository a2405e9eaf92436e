"""Percentile series helpers.

This module filters, aggregates, adjusts and normalizes percentile series.
It is shared by the executor, the multiplier engine and transformers.
"""
