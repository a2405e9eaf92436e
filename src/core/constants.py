"""Core constants used across cashcube modules.

This module centralizes defaults for percentiles, financing and audit.
Keeping values here avoids magic literals in business logic.
"""

from __future__ import annotations

DEFAULT_PERCENTILES = (10, 25, 50, 75, 90)
CUSTOM_PERCENTILE = 0
MIN_PERCENTILE = 1
MAX_PERCENTILE = 99
DEFAULT_AUDIT_PERCENTILE = 50
DEFAULT_AUDIT_SAMPLING = True
SOURCE_TYPE_ORDER = ("direct", "indirect", "virtual")
DEFAULT_MULTIPLIER_BASE_YEAR = 1
DEFAULT_PROJECT_LIFE = 20
DEFAULT_NUM_WTGS = 1
DEFAULT_LOAN_DURATION = 15
DEFAULT_GRACE_PERIOD = 1
DEFAULT_AMORTIZATION_TYPE = "amortizing"
DEFAULT_DEBT_RATE_PERCENT = 5.0
DEFAULT_DEBT_FINANCING_RATIO_PERCENT = 70.0
RESERVE_PROVISION_YEARS = 5
REGISTRY_SPEC_VERSION = 1
PERCENTILE_SERIES_DEFAULT_NAME = "series"
