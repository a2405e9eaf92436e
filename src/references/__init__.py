"""Scenario reference resolution.

This module resolves named paths into the scenario configuration tree.
It isolates the pipeline from how scenarios are stored or loaded.
"""
