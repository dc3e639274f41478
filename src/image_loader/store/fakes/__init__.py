# Fake implementations for testing

from .fake_store import FakeImageStore, StoredImage

__all__ = ["FakeImageStore", "StoredImage"]
