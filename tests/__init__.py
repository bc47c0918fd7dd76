"""
docconf Test Suite
==================

Test Organization
-----------------
- tests/unit/          : Fast unit tests with in-memory collaborators
- tests/integration/   : Integration tests with testcontainers (real Redis)

Testing Philosophy
------------------
- Unit tests: fast, isolated, test configuration semantics
- Integration tests: slower, test real infrastructure interactions
- Use pytest markers to categorize and selectively run tests
- Follow AAA pattern: Arrange, Act, Assert
"""
