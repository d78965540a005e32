"""Creating posts and listing them with paging, tags and authors."""

from __future__ import annotations

import math
from collections import defaultdict
from typing import Optional

from sqlalchemy import func, or_, select
from sqlalchemy.engine import Engine
from sqlalchemy.exc import SQLAlchemyError

from .db import InsertError
from .models import (
    CreatedBy,
    NewPostInput,
    PaginatedResponse,
    PaginationMeta,
    Post,
    PostResponse,
    PostWithTags,
)
from .schema import posts, posts_tags, users

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


def create_post(engine: Engine, post_input: NewPostInput) -> NewPostInput:
    """Store a post and its tags; return the input that was stored."""
    try:
        with engine.connect() as conn:
            result = conn.execute(
                posts.insert().values(
                    created_by=post_input.created_by,
                    title=post_input.title,
                    body=post_input.body,
                )
            )
            new_id = result.inserted_primary_key[0]
            conn.commit()
            if post_input.tags:
                conn.execute(
                    posts_tags.insert(),
                    [{"post_id": new_id, "tag": tag} for tag in post_input.tags],
                )
                conn.commit()
    except SQLAlchemyError as exc:
        raise InsertError("unable to store post") from exc
    return post_input


def list_posts(
    engine: Engine,
    page: Optional[int] = None,
    limit: Optional[int] = None,
    search: Optional[str] = None,
) -> PaginatedResponse[Post]:
    """List posts whose title contains the search text, ignoring case."""
    page = _unsigned(page, "page", _DEFAULT_PAGE)
    limit = _unsigned(limit, "limit", _DEFAULT_LIMIT)
    needle = (search or "").lower()
    if page == 0:
        raise ValueError("page must be at least 1")
    if limit == 0:
        raise ValueError("limit must be at least 1")

    with engine.connect() as conn:
        rows = conn.execute(select(posts).order_by(posts.c.id)).mappings().all()

    filtered = [
        Post(
            id=row["id"],
            created_by=row["created_by"],
            title=row["title"],
            body=row["body"],
            published=bool(row["published"]),
        )
        for row in rows
        if needle in row["title"].lower()
    ]

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


def list_posts_with_tags(
    engine: Engine,
    page: Optional[int] = None,
    limit: Optional[int] = None,
    search: Optional[str] = None,
) -> PaginatedResponse[PostWithTags]:
    """List posts matching the search text together with their tags."""
    page = max(_unsigned(page, "page", _DEFAULT_PAGE), 1)
    limit = min(_unsigned(limit, "limit", _DEFAULT_LIMIT), _MAX_LIMIT)
    if limit == 0:
        raise ValueError("limit must be at least 1")
    offset = (page - 1) * limit
    pattern = f"%{(search or '').lower()}%"
    matches = posts.c.title.ilike(pattern)

    with engine.connect() as conn:
        try:
            total_docs = conn.execute(
                select(func.count()).select_from(posts).where(matches)
            ).scalar_one()
        except SQLAlchemyError:
            total_docs = 0

        rows = conn.execute(
            select(posts.c.id, posts.c.title, posts.c.body)
            .where(matches)
            .order_by(posts.c.id)
            .limit(limit)
            .offset(offset)
        ).all()

        tags_by_post: dict[int, list[str]] = defaultdict(list)
        ids = [row.id for row in rows]
        if ids:
            for tag_row in conn.execute(
                select(posts_tags.c.post_id, posts_tags.c.tag)
                .where(posts_tags.c.post_id.in_(ids))
                .order_by(posts_tags.c.id)
            ):
                tags_by_post[tag_row.post_id].append(tag_row.tag)

    records = [
        PostWithTags(id=row.id, title=row.title, body=row.body, tags=tags_by_post.get(row.id, []))
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


def list_posts_with_authors(
    engine: Engine,
    page: Optional[int] = None,
    limit: Optional[int] = None,
    search: Optional[str] = None,
) -> PaginatedResponse[PostResponse]:
    """List posts with their authors, searching title or author username."""
    page = max(_unsigned(page, "page", _DEFAULT_PAGE), 1)
    limit = min(_unsigned(limit, "limit", _DEFAULT_LIMIT), _MAX_LIMIT)
    offset = (page - 1) * limit

    query = select(
        posts.c.id,
        posts.c.title,
        posts.c.body,
        users.c.id.label("user_id"),
        users.c.username,
        users.c.first_name,
        users.c.last_name,
    ).select_from(posts.outerjoin(users, users.c.id == posts.c.created_by))
    if search is not None:
        pattern = f"%{search}%"
        query = query.where(or_(posts.c.title.ilike(pattern), users.c.username.ilike(pattern)))
    query = query.order_by(posts.c.id).limit(limit).offset(offset)

    with engine.connect() as conn:
        rows = conn.execute(query).all()

    records = [
        PostResponse(
            id=row.id,
            title=row.title,
            body=row.body,
            created_by=None
            if row.user_id is None
            else CreatedBy(
                user_id=row.user_id,
                username=row.username or "",
                first_name=row.first_name or "",
                last_name=row.last_name,
            ),
        )
        for row in rows
    ]

    # The total covers the records of this page only.
    total_docs = len(records)
    total_pages = math.ceil(total_docs / limit) if limit else 0
    meta = PaginationMeta(
        current_page=page,
        per_page=limit,
        from_=0 if total_docs == 0 else offset + 1,
        to=min(offset + limit, total_docs),
        total_pages=total_pages,
        total_docs=total_docs,
    )
    return PaginatedResponse(records=records, meta=meta)