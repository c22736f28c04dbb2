"""
EcoTrack Test Suite
===================

Test Organization
-----------------
- tests/unit/          : Fast unit tests with mocks (no external dependencies)
- tests/unit/domain/   : Value object invariants
- tests/integration/   : Service tests against an in-memory SQLite database

Testing Philosophy
------------------
- Unit tests: Fast, isolated, test the pure accounting functions
- Integration tests: Exercise services end to end through DatabaseService
- Use pytest markers to categorize and selectively run tests
- Follow AAA pattern: Arrange, Act, Assert
"""
