"""Test factories for generating test data.

Re-exports all factories for convenient imports:
    from tests.factories import ProjectPayloadFactory
"""

from tests.factories.project import ProjectPayloadFactory

__all__ = ["ProjectPayloadFactory"]
