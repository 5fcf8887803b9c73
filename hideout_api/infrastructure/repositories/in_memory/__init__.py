from .builds import InMemoryBuildRepository
from .identity import (
    InMemoryHideoutRepository,
    InMemoryPartyMemberRepository,
    InMemoryUserRepository,
)
from .inventory import InMemoryChecklistRepository, InMemoryStashRepository

__all__ = [
    "InMemoryBuildRepository",
    "InMemoryChecklistRepository",
    "InMemoryHideoutRepository",
    "InMemoryPartyMemberRepository",
    "InMemoryStashRepository",
    "InMemoryUserRepository",
]
