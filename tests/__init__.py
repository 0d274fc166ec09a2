"""
AdherenceLens Test Suite
========================

This package contains all tests for the AdherenceLens adherence analytics.

Test Structure:
- test_tools/: Pure calculation tests (bucketing, streaks, schedules, correlation math)
- test_services/: Service tests against an in-memory SQLite database
- test_actions/: Insight rule tests over hand-built overviews
- conftest.py: Shared pytest fixtures

Running Tests:
    # Run all tests
    pytest

    # Run specific test module
    pytest tests/test_services/

    # Run with verbose output
    pytest -v
"""
