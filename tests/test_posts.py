import pytest
from sqlalchemy import create_engine

from blogapi.db import InsertError
from blogapi.models import NewPostInput
from blogapi.posts import (
    create_post,
    list_posts,
    list_posts_with_authors,
    list_posts_with_tags,
)
from blogapi.schema import create_tables, users


@pytest.fixture
def engine(tmp_path):
    eng = create_engine(f"sqlite:///{tmp_path / 'blog.db'}")
    create_tables(eng)
    yield eng
    eng.dispose()


def _add_user(engine, username, first_name, last_name):
    with engine.begin() as conn:
        result = conn.execute(
            users.insert().values(username=username, first_name=first_name, last_name=last_name)
        )
        return result.inserted_primary_key[0]


def _add_posts(engine, titles):
    for title in titles:
        create_post(engine, NewPostInput(title=title, body=f"body of {title}"))


def test_create_post_returns_input_and_stores_post(engine):
    post = NewPostInput(title="The Statesman", body="The new age politician", tags=["a", "b"])
    assert create_post(engine, post) is post
    listed = list_posts(engine)
    assert [p.title for p in listed.records] == ["The Statesman"]
    assert listed.records[0].body == "The new age politician"
    assert listed.records[0].published is False
    assert listed.records[0].created_by is None


def test_create_post_stores_tags_in_order(engine):
    create_post(engine, NewPostInput(title="Tagged", body="x", tags=["rust", "web", "db"]))
    create_post(engine, NewPostInput(title="Bare", body="y"))
    result = list_posts_with_tags(engine)
    tags = {record.title: record.tags for record in result.records}
    assert tags == {"Tagged": ["rust", "web", "db"], "Bare": []}


def test_create_post_without_tables_raises_insert_error(tmp_path):
    eng = create_engine(f"sqlite:///{tmp_path / 'empty.db'}")
    with pytest.raises(InsertError):
        create_post(eng, NewPostInput(title="t", body="b"))
    eng.dispose()


def test_list_posts_search_ignores_case(engine):
    _add_posts(engine, ["The Statesman", "Weather report", "statesman returns"])
    result = list_posts(engine, search="STATESMAN")
    assert [p.title for p in result.records] == ["The Statesman", "statesman returns"]
    assert result.meta.total_docs == len(result.records)


def test_list_posts_pages_cover_everything_once(engine):
    titles = [f"post {n}" for n in range(7)]
    _add_posts(engine, titles)
    first = list_posts(engine, page=1, limit=3)
    seen = []
    for page in range(1, first.meta.total_pages + 1):
        result = list_posts(engine, page=page, limit=3)
        assert result.meta.current_page == page
        assert result.meta.to - result.meta.from_ + 1 == len(result.records)
        seen.extend(p.title for p in result.records)
    assert seen == titles
    assert first.meta.total_docs == len(titles)


def test_list_posts_empty_meta(engine):
    result = list_posts(engine)
    assert result.records == []
    assert result.meta.to_dict() == {
        "current_page": 1,
        "per_page": 10,
        "from": 0,
        "to": 0,
        "total_pages": 0,
        "total_docs": 0,
    }


def test_list_posts_rejects_page_past_end(engine):
    _add_posts(engine, ["only"])
    with pytest.raises(ValueError):
        list_posts(engine, page=3, limit=1)


@pytest.mark.parametrize("kwargs", [{"page": 0}, {"limit": 0}, {"page": -1}])
def test_list_posts_rejects_bad_arguments(engine, kwargs):
    with pytest.raises(ValueError):
        list_posts(engine, **kwargs)


def test_list_posts_with_tags_clamps_page_and_limit(engine):
    _add_posts(engine, ["a"])
    result = list_posts_with_tags(engine, page=0, limit=500)
    assert result.meta.current_page == 1
    assert result.meta.per_page == 100
    assert result.meta.total_pages == 1


def test_list_posts_with_tags_search_and_count(engine):
    _add_posts(engine, ["Rust news", "Python news", "Gardening"])
    result = list_posts_with_tags(engine, search="NEWS")
    assert [r.title for r in result.records] == ["Rust news", "Python news"]
    assert result.meta.total_docs == len(result.records)
    assert result.meta.from_ == 1
    assert result.meta.to == len(result.records)


def test_list_posts_with_tags_paging_counts_all_matches(engine):
    titles = [f"item {n}" for n in range(5)]
    _add_posts(engine, titles)
    seen = []
    first = list_posts_with_tags(engine, page=1, limit=2)
    for page in range(1, first.meta.total_pages + 1):
        result = list_posts_with_tags(engine, page=page, limit=2)
        assert result.meta.total_docs == len(titles)
        seen.extend(r.title for r in result.records)
    assert seen == titles


def test_list_posts_with_tags_rejects_zero_limit(engine):
    with pytest.raises(ValueError):
        list_posts_with_tags(engine, limit=0)


def test_list_posts_with_authors_maps_author(engine):
    uid = _add_user(engine, "firstlast3", "user 3", "last 3")
    create_post(engine, NewPostInput(title="Signed", body="b", created_by=uid))
    create_post(engine, NewPostInput(title="Anonymous", body="b"))
    result = list_posts_with_authors(engine)
    by_title = {r.title: r for r in result.records}
    assert by_title["Anonymous"].created_by is None
    author = by_title["Signed"].created_by
    assert author.to_dict() == {
        "user_id": uid,
        "username": "firstlast3",
        "first_name": "user 3",
        "last_name": "last 3",
    }


def test_list_posts_with_authors_searches_username(engine):
    uid = _add_user(engine, "firstlast3", "user 3", "last 3")
    create_post(engine, NewPostInput(title="Signed", body="b", created_by=uid))
    create_post(engine, NewPostInput(title="Other", body="b"))
    result = list_posts_with_authors(engine, search="FIRSTLAST")
    assert [r.title for r in result.records] == ["Signed"]
    assert result.meta.total_docs == len(result.records)
    assert result.meta.from_ == 1


def test_list_posts_with_authors_zero_limit_is_empty(engine):
    _add_posts(engine, ["a", "b"])
    result = list_posts_with_authors(engine, limit=0)
    assert result.records == []
    assert result.meta.total_pages == 0
    assert result.meta.from_ == 0


def test_list_posts_with_authors_no_match(engine):
    _add_posts(engine, ["a"])
    result = list_posts_with_authors(engine, search="zzz")
    assert result.records == []
    assert result.meta.total_docs == 0
    assert result.meta.to == 0


def test_list_posts_with_authors_to_dict_shape(engine):
    _add_posts(engine, ["Shape"])
    data = list_posts_with_authors(engine).to_dict()
    assert data["records"] == [
        {"id": 1, "title": "Shape", "body": "body of Shape", "created_by": None}
    ]
    assert data["meta"]["per_page"] == 10