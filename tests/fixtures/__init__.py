"""Test fixtures for mythic-analyzer tests."""

from .documents import (
    ARCANE_DOC, CHAIN_DOC, FIREBALL_DOC, NAMESPACE_DOC, ZOMBIE_DOC,
    make_document, make_mob, make_skill,
)

__all__ = [
    "ARCANE_DOC",
    "CHAIN_DOC",
    "FIREBALL_DOC",
    "NAMESPACE_DOC",
    "ZOMBIE_DOC",
    "make_document",
    "make_mob",
    "make_skill",
]
