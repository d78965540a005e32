"""Creating and listing groups."""

from __future__ import annotations

from sqlalchemy import select
from sqlalchemy.engine import Engine
from sqlalchemy.exc import SQLAlchemyError

from .db import InsertError
from .models import Group, NewGroup
from .schema import groups


def create_group(engine: Engine, new_group: NewGroup) -> NewGroup:
    """Store a group; return the input that was stored."""
    try:
        with engine.connect() as conn:
            conn.execute(groups.insert().values(group_name=new_group.group_name))
            conn.commit()
    except SQLAlchemyError as exc:
        raise InsertError("unable to store group") from exc
    return new_group


def list_groups(engine: Engine) -> list[Group]:
    """Return every group."""
    with engine.connect() as conn:
        rows = conn.execute(select(groups).order_by(groups.c.id)).all()
    return [Group(id=row.id, group_name=row.group_name) for row in rows]