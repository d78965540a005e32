"""Creating users and listing them with paging and group membership."""

from __future__ import annotations

from collections import defaultdict
from typing import Optional

from sqlalchemy import func, select
from sqlalchemy.engine import Engine
from sqlalchemy.exc import SQLAlchemyError

from .db import InsertError
from .models import NewUserInput, PaginatedResponse, PaginationMeta, User, UserList
from .schema import user_groups, users

_U32_MAX = 2**32 - 1
_DEFAULT_PAGE = 1
_DEFAULT_LIMIT = 10
_MAX_LIMIT = 100


def _unsigned(value: Optional[int], name: str, default: int) -> int:
    if value is None:
        return default
    if isinstance(value, bool) or not isinstance(value, int):
        raise TypeError(f"{name} must be an integer")
    if not 0 <= value <= _U32_MAX:
        raise ValueError(f"{name} is out of range")
    return value


def _user(row) -> User:
    return User(
        id=row.id,
        username=row.username,
        first_name=row.first_name,
        last_name=row.last_name,
    )


def create_user(engine: Engine, user_input: NewUserInput) -> NewUserInput:
    """Store a user and its group memberships; return the input that was stored."""
    try:
        with engine.connect() as conn:
            result = conn.execute(
                users.insert().values(
                    username=user_input.username,
                    first_name=user_input.first_name,
                    last_name=user_input.last_name,
                )
            )
            new_id = result.inserted_primary_key[0]
            conn.commit()
            if user_input.group_ids:
                conn.execute(
                    user_groups.insert(),
                    [{"user_id": new_id, "group_id": gid} for gid in user_input.group_ids],
                )
                conn.commit()
    except SQLAlchemyError as exc:
        raise InsertError("unable to store user") from exc
    return user_input


def list_users(engine: Engine) -> list[User]:
    """Return every user."""
    with engine.connect() as conn:
        rows = conn.execute(select(users).order_by(users.c.id)).all()
    return [_user(row) for row in rows]


def get_users(
    engine: Engine,
    page: Optional[int] = None,
    limit: Optional[int] = None,
    search: Optional[str] = None,
) -> PaginatedResponse[User]:
    """List users whose username contains the search text, ignoring case."""
    page = _unsigned(page, "page", _DEFAULT_PAGE)
    limit = _unsigned(limit, "limit", _DEFAULT_LIMIT)
    needle = (search or "").lower()
    if page == 0:
        raise ValueError("page must be at least 1")
    if limit == 0:
        raise ValueError("limit must be at least 1")

    filtered = [user for user in list_users(engine) if needle in user.username.lower()]

    total_docs = len(filtered)
    total_pages = (total_docs + limit - 1) // limit
    start = (page - 1) * limit
    end = min(start + limit, total_docs)
    if start > end:
        raise ValueError("page is past the last record")

    meta = PaginationMeta(
        current_page=page,
        per_page=limit,
        from_=min(start + 1, total_docs),
        to=min(end, total_docs),
        total_pages=total_pages,
        total_docs=total_docs,
    )
    return PaginatedResponse(records=filtered[start:end], meta=meta)


def get_users_with_group_ids(
    engine: Engine,
    page: Optional[int] = None,
    limit: Optional[int] = None,
    search: Optional[str] = None,
) -> PaginatedResponse[UserList]:
    """List users matching the search text with the ids of their groups."""
    page = max(_unsigned(page, "page", _DEFAULT_PAGE), 1)
    limit = min(_unsigned(limit, "limit", _DEFAULT_LIMIT), _MAX_LIMIT)
    if limit == 0:
        raise ValueError("limit must be at least 1")
    offset = (page - 1) * limit
    pattern = f"%{(search or '').lower()}%"
    matches = users.c.username.ilike(pattern)

    with engine.connect() as conn:
        try:
            total_docs = conn.execute(
                select(func.count()).select_from(users).where(matches)
            ).scalar_one()
        except SQLAlchemyError:
            total_docs = 0

        rows = conn.execute(
            select(users).where(matches).order_by(users.c.id).limit(limit).offset(offset)
        ).all()

        groups_by_user: dict[int, list[int]] = defaultdict(list)
        ids = [row.id for row in rows]
        if ids:
            for link in conn.execute(
                select(user_groups.c.user_id, user_groups.c.group_id)
                .where(user_groups.c.user_id.in_(ids))
                .order_by(user_groups.c.id)
            ):
                groups_by_user[link.user_id].append(link.group_id)

    records = [
        UserList(
            id=row.id,
            username=row.username,
            first_name=row.first_name,
            last_name=row.last_name,
            group_ids=groups_by_user.get(row.id, []),
        )
        for row in rows
    ]
    total_pages = max((total_docs + limit - 1) // limit, 1)
    meta = PaginationMeta(
        current_page=page,
        per_page=limit,
        from_=offset + 1,
        to=offset + len(records),
        total_pages=total_pages,
        total_docs=total_docs,
    )
    return PaginatedResponse(records=records, meta=meta)