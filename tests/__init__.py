"""
Test Suite for the Credit Card Tracker

Test Structure:
- fixtures/: Shared test data and in-memory collaborators
- unit/: Unit tests mirroring src/ package structure
- integration/: End-to-end CLI workflow tests

Test Data:
All test data is synthetic. Real card transactions are never included in tests.
"""
