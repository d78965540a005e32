import pytest
import sqlalchemy as sa
from sqlalchemy.pool import StaticPool

from blogapi import schema


@pytest.fixture
def engine():
    eng = sa.create_engine("sqlite://", poolclass=StaticPool)
    schema.create_tables(eng)
    yield eng
    eng.dispose()


def test_all_tables_created(engine):
    names = set(sa.inspect(engine).get_table_names())
    assert names == {"groups", "posts", "posts_tags", "user_groups", "users"}


def test_post_columns(engine):
    columns = [c["name"] for c in sa.inspect(engine).get_columns("posts")]
    assert columns == ["id", "created_by", "title", "body", "published"]


def test_user_columns(engine):
    columns = [c["name"] for c in sa.inspect(engine).get_columns("users")]
    assert columns == ["id", "username", "first_name", "last_name"]


def test_published_defaults_to_false_and_creator_optional(engine):
    with engine.begin() as conn:
        new_id = conn.execute(
            sa.insert(schema.posts).values(title="T", body="B").returning(schema.posts.c.id)
        ).scalar_one()
        row = conn.execute(
            sa.select(schema.posts).where(schema.posts.c.id == new_id)
        ).one()
    assert row.published is False
    assert row.created_by is None
    assert row.title == "T"


def test_foreign_keys(engine):
    inspector = sa.inspect(engine)
    post_fks = inspector.get_foreign_keys("posts")
    assert [(fk["constrained_columns"], fk["referred_table"]) for fk in post_fks] == [
        (["created_by"], "users")
    ]
    group_refs = {fk["referred_table"] for fk in inspector.get_foreign_keys("user_groups")}
    assert group_refs == {"users", "groups"}
    tag_refs = {fk["referred_table"] for fk in inspector.get_foreign_keys("posts_tags")}
    assert tag_refs == {"posts"}


def test_create_tables_is_idempotent(engine):
    with engine.begin() as conn:
        conn.execute(sa.insert(schema.groups).values(group_name="admins"))
    schema.create_tables(engine)
    with engine.connect() as conn:
        names = conn.execute(sa.select(schema.groups.c.group_name)).scalars().all()
    assert names == ["admins"]