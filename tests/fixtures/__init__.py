"""Test fixtures for the insights engine."""

from tests.fixtures.mocks import MockClaudeService

__all__ = ["MockClaudeService"]
