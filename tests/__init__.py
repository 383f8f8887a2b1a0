"""
Test suite for SIGE catalog reconciliation.

Run all tests: pytest
Run unit tests only: pytest tests/unit/
Run specific file: pytest tests/unit/test_catalog_matcher.py -v
"""
