"""Numerical constants for the reaction adjustment step."""

from __future__ import annotations

# Phase activation: a zeroed multispecies phase comes alive below this driving force.
ACTIVATION_DG_THRESHOLD = -1.0e-4
ACTIVATION_SEED_MOLES = 1.0e-10

# Superconvergence tolerance on |dg| (0.01 * major species tolerance of 1e-8).
TOLMAJ2 = 1.0e-10

# The activity coefficient correction may shrink the ideal diagonal by at most this fraction.
HESSIAN_REDUCTION_LIMIT = 0.6666

# Upper bound on the extent used by the ratio test when dg < 0.
RATIO_TEST_BIG = 1.0e10

LINE_SEARCH_MAX_ITS = 10
LINE_SEARCH_ACCEPT_FACTOR = 0.8
LINE_SEARCH_TIGHTEN = 0.1
RESIDUAL_FLOOR = 1.0e-15

MOLE_FRACTION_FLOOR = 1.0e-32
