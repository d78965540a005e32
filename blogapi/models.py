"""Records exchanged with clients and read from the database."""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any, Generic, Optional, TypeVar

_I32_MIN = -(2**31)
_I32_MAX = 2**31 - 1

T = TypeVar("T")


def _as_mapping(data: Any, kind: str) -> Mapping[str, Any]:
    if not isinstance(data, Mapping):
        raise ValueError(f"{kind} must be a JSON object")
    return data


def _require(data: Mapping[str, Any], name: str) -> Any:
    try:
        return data[name]
    except KeyError:
        raise ValueError(f"missing field `{name}`") from None


def _as_str(value: Any, name: str) -> str:
    if not isinstance(value, str):
        raise ValueError(f"field `{name}` must be a string")
    return value


def _as_i32(value: Any, name: str) -> int:
    if isinstance(value, bool) or not isinstance(value, int):
        raise ValueError(f"field `{name}` must be an integer")
    if not _I32_MIN <= value <= _I32_MAX:
        raise ValueError(f"field `{name}` is out of range for a 32-bit integer")
    return value


def _as_list(value: Any, name: str) -> list[Any]:
    if not isinstance(value, list):
        raise ValueError(f"field `{name}` must be an array")
    return value


@dataclass
class PaginationMeta:
    current_page: int
    per_page: int
    from_: int
    to: int
    total_pages: int
    total_docs: int

    def to_dict(self) -> dict[str, int]:
        return {
            "current_page": self.current_page,
            "per_page": self.per_page,
            "from": self.from_,
            "to": self.to,
            "total_pages": self.total_pages,
            "total_docs": self.total_docs,
        }


@dataclass
class PaginatedResponse(Generic[T]):
    records: list[T]
    meta: PaginationMeta

    def to_dict(self) -> dict[str, Any]:
        return {
            "records": [record.to_dict() for record in self.records],  # type: ignore[attr-defined]
            "meta": self.meta.to_dict(),
        }


@dataclass
class Post:
    id: int
    created_by: Optional[int]
    title: str
    body: str
    published: bool

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "created_by": self.created_by,
            "title": self.title,
            "body": self.body,
            "published": self.published,
        }


@dataclass
class NewPostInput:
    title: str
    body: str
    tags: list[str] = field(default_factory=list)
    created_by: Optional[int] = None

    @classmethod
    def from_dict(cls, data: Any) -> "NewPostInput":
        data = _as_mapping(data, "post")
        created_by = data.get("created_by")
        if created_by is not None:
            created_by = _as_i32(created_by, "created_by")
        title = _as_str(_require(data, "title"), "title")
        body = _as_str(_require(data, "body"), "body")
        tags = [_as_str(tag, "tags") for tag in _as_list(_require(data, "tags"), "tags")]
        return cls(title=title, body=body, tags=tags, created_by=created_by)

    def to_dict(self) -> dict[str, Any]:
        return {
            "created_by": self.created_by,
            "title": self.title,
            "body": self.body,
            "tags": list(self.tags),
        }


@dataclass
class PostWithTags:
    id: int
    title: str
    body: str
    tags: list[str]

    def to_dict(self) -> dict[str, Any]:
        return {"id": self.id, "title": self.title, "body": self.body, "tags": list(self.tags)}


@dataclass
class CreatedBy:
    user_id: int
    username: str
    first_name: str
    last_name: Optional[str]

    def to_dict(self) -> dict[str, Any]:
        return {
            "user_id": self.user_id,
            "username": self.username,
            "first_name": self.first_name,
            "last_name": self.last_name,
        }


@dataclass
class PostResponse:
    id: int
    title: str
    body: str
    created_by: Optional[CreatedBy]

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "title": self.title,
            "body": self.body,
            "created_by": self.created_by.to_dict() if self.created_by is not None else None,
        }


@dataclass
class User:
    id: int
    username: str
    first_name: str
    last_name: str

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "username": self.username,
            "first_name": self.first_name,
            "last_name": self.last_name,
        }


@dataclass
class NewUserInput:
    username: str
    first_name: str
    last_name: str
    group_ids: list[int]

    @classmethod
    def from_dict(cls, data: Any) -> "NewUserInput":
        data = _as_mapping(data, "user")
        return cls(
            username=_as_str(_require(data, "username"), "username"),
            first_name=_as_str(_require(data, "first_name"), "first_name"),
            last_name=_as_str(_require(data, "last_name"), "last_name"),
            group_ids=[
                _as_i32(gid, "group_ids")
                for gid in _as_list(_require(data, "group_ids"), "group_ids")
            ],
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "username": self.username,
            "first_name": self.first_name,
            "last_name": self.last_name,
            "group_ids": list(self.group_ids),
        }


@dataclass
class Group:
    id: int
    group_name: str

    def to_dict(self) -> dict[str, Any]:
        return {"id": self.id, "group_name": self.group_name}


@dataclass
class NewGroup:
    group_name: str

    @classmethod
    def from_dict(cls, data: Any) -> "NewGroup":
        data = _as_mapping(data, "group")
        return cls(group_name=_as_str(_require(data, "group_name"), "group_name"))

    def to_dict(self) -> dict[str, Any]:
        return {"group_name": self.group_name}


@dataclass
class UserList:
    id: int
    username: str
    first_name: str
    last_name: str
    group_ids: list[int]

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "username": self.username,
            "first_name": self.first_name,
            "last_name": self.last_name,
            "group_ids": list(self.group_ids),
        }