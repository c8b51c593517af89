"""
Test Suite

Structure:
    tests/
    ├── conftest.py         # Environment, mongomock database and seed fixtures
    ├── unit/               # Pure rules and utilities
    └── integration/        # Services and API endpoints against mongomock

To run tests:
    pytest
    pytest backend/tests/unit/
"""
