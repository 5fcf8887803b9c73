from .builds import PostgresBuildRepository
from .identity import (
    PostgresHideoutRepository,
    PostgresPartyMemberRepository,
    PostgresUserRepository,
)
from .inventory import PostgresChecklistRepository, PostgresStashRepository

__all__ = [
    "PostgresBuildRepository",
    "PostgresChecklistRepository",
    "PostgresHideoutRepository",
    "PostgresPartyMemberRepository",
    "PostgresStashRepository",
    "PostgresUserRepository",
]
