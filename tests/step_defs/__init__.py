"""Step definitions package for BDD tests.

This package contains modular step definitions organized by domain/functionality.
Every *_steps.py module is loaded as a plugin by the root conftest.py so
pytest-bdd can discover its steps.
"""
