"""
Trip ownership reference.

A trip is owned either by an authenticated user or by an anonymous shadow
identity, never both. Services take an ``Owner`` instead of a pair of
optional ids so the two cases cannot be mixed up.
"""
import enum
from dataclasses import dataclass


class OwnerKind(enum.Enum):
    USER = "user"
    SHADOW = "shadow"


@dataclass(frozen=True)
class Owner:
    kind: OwnerKind
    id: str

    def __post_init__(self):
        if not self.id:
            raise ValueError("owner id must not be empty")

    @classmethod
    def user(cls, user_id: str) -> "Owner":
        return cls(OwnerKind.USER, user_id)

    @classmethod
    def shadow(cls, shadow_id: str) -> "Owner":
        return cls(OwnerKind.SHADOW, shadow_id)

    @property
    def is_user(self) -> bool:
        return self.kind is OwnerKind.USER
