"""
Storage Module: repository interface consumed by the engine.
"""

from .repository import Repository, InMemoryRepository

__all__ = [
    "Repository",
    "InMemoryRepository",
]
