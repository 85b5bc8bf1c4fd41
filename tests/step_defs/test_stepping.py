"""
Step definitions for the stepping policies feature.

All steps are shared and live in tests/conftest.py.
"""
from pytest_bdd import scenarios

# Load scenarios from feature file
scenarios("../features/stepping.feature")
