# Fake implementations for testing

from .fake_repository import FakeRepository

__all__ = ["FakeRepository"]
