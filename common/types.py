"""Shared data type definitions (Entity, EntityKind)."""

from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Any, Dict, Optional, Tuple

from common.constants import CONTENT_INLINE_LIMIT


class EntityKind(str, Enum):
    """Kind of a drive entity. Fixed at creation."""
    FILE = "file"
    FOLDER = "folder"


@dataclass(frozen=True)
class Entity:
    """
    A file or folder record owned by one account.

    Instances are immutable; mutations publish a new instance through
    dataclasses.replace so readers never see a half-updated record.
    """
    id: str
    name: str
    kind: EntityKind
    owner: str
    created_at: str
    modified_at: str
    size: int = 0
    mime_type: str = ""
    parent_id: Optional[str] = None
    starred: bool = False
    shared: bool = False
    shared_with: Tuple[str, ...] = field(default_factory=tuple)
    content: Optional[str] = None

    @property
    def is_folder(self) -> bool:
        return self.kind == EntityKind.FOLDER

    def with_star(self, starred: bool) -> "Entity":
        return replace(self, starred=starred)

    def with_share(self, shared_with) -> "Entity":
        return replace(self, shared=True, shared_with=unique_accounts(shared_with))

    def to_dict(self) -> Dict[str, Any]:
        """Serialize to the persisted camelCase schema."""
        return {
            "id": self.id,
            "name": self.name,
            "type": self.kind.value,
            "size": self.size,
            "mimeType": self.mime_type,
            "createdAt": self.created_at,
            "modifiedAt": self.modified_at,
            "parentId": self.parent_id,
            "owner": self.owner,
            "starred": self.starred,
            "shared": self.shared,
            "sharedWith": list(self.shared_with),
            "content": self.content,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Entity":
        """Deserialize from the persisted camelCase schema."""
        return cls(
            id=data["id"],
            name=data["name"],
            kind=EntityKind(data["type"]),
            owner=data["owner"],
            created_at=data["createdAt"],
            modified_at=data.get("modifiedAt") or data["createdAt"],
            size=data.get("size") or 0,
            mime_type=data.get("mimeType") or "",
            parent_id=data.get("parentId"),
            starred=bool(data.get("starred", False)),
            shared=bool(data.get("shared", False)),
            shared_with=unique_accounts(data.get("sharedWith") or []),
            content=data.get("content"),
        )


def unique_accounts(accounts) -> Tuple[str, ...]:
    """Deduplicate account ids while keeping first-seen order."""
    return tuple(dict.fromkeys(accounts))


def inline_content(kind: EntityKind, size: int, content: Optional[str]) -> Optional[str]:
    """
    Return the content payload allowed for an entity.

    Only non-empty files smaller than CONTENT_INLINE_LIMIT carry inline content.
    """
    if kind == EntityKind.FILE and 0 < size < CONTENT_INLINE_LIMIT:
        return content
    return None
