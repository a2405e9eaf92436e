"""Multiplier engine.

This module folds ordered escalation and scaling adjustments into series.
It resolves multiplier values from processed sources or references.
"""
