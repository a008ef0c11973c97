"""
Test suite for corpfin

Contains:
- tests/unit/          : Unit tests for the decimal kernel, linear solver,
                         domain models and portfolio calculators
"""
