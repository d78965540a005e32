"""HTTP routes for posts, users and groups, and the server command."""

from __future__ import annotations

import argparse
import json
import os
from typing import Any, Callable, Optional

from dotenv import find_dotenv, load_dotenv
from flask import Flask, Response, abort, jsonify, request
from sqlalchemy.engine import Engine
from sqlalchemy.exc import SQLAlchemyError

from . import groups as group_service
from . import posts as post_service
from . import users as user_service
from .db import InsertError, establish_connection
from .models import NewGroup, NewPostInput, NewUserInput

_U32_MAX = 2**32 - 1
_U16_MAX = 2**16 - 1


def _query_u32(name: str) -> Optional[int]:
    raw = request.args.get(name)
    if raw is None:
        return None
    if not (raw.isascii() and raw.isdigit()) or int(raw) > _U32_MAX:
        abort(422)
    return int(raw)


def _paging() -> dict[str, Any]:
    return {
        "page": _query_u32("page"),
        "limit": _query_u32("limit"),
        "search": request.args.get("search"),
    }


def _json_body(parse: Callable[[Any], Any]) -> Any:
    if request.mimetype != "application/json":
        abort(404)
    try:
        data = json.loads(request.get_data(as_text=True))
    except ValueError:
        abort(400)
    try:
        return parse(data)
    except ValueError:
        abort(422)


def _created(body: dict[str, Any]) -> Response:
    response = jsonify(body)
    response.status_code = 201
    response.headers["Location"] = "/"
    return response


def _no_content() -> Response:
    return Response(status=204)


def create_app(engine: Engine) -> Flask:
    """Build the application serving the blog routes over the given database."""
    app = Flask(__name__)
    app.json.sort_keys = False

    @app.errorhandler(ValueError)
    def _bad_arguments(exc: ValueError):
        return jsonify({"message": str(exc)}), 500

    @app.post("/post")
    def create_post():
        post_input = _json_body(NewPostInput.from_dict)
        try:
            stored = post_service.create_post(engine, post_input)
        except InsertError:
            return _no_content()
        return _created(stored.to_dict())

    @app.get("/listposts1")
    def list_posts():
        return jsonify(post_service.list_posts(engine, **_paging()).to_dict())

    @app.get("/listpost2")
    def list_posts_with_tags():
        return jsonify(post_service.list_posts_with_tags(engine, **_paging()).to_dict())

    @app.get("/listpost3")
    def list_posts_with_authors():
        return jsonify(post_service.list_posts_with_authors(engine, **_paging()).to_dict())

    @app.post("/user")
    def create_user():
        user_input = _json_body(NewUserInput.from_dict)
        try:
            stored = user_service.create_user(engine, user_input)
        except InsertError:
            return _no_content()
        return _created(stored.to_dict())

    @app.get("/users")
    def list_users():
        found = user_service.list_users(engine)
        return jsonify({"users": [u.to_dict() for u in found], "count": len(found)})

    @app.get("/userss")
    def get_users():
        return jsonify(user_service.get_users(engine, **_paging()).to_dict())

    @app.get("/usergroups")
    def get_users_with_group_ids():
        try:
            result = user_service.get_users_with_group_ids(engine, **_paging())
        except SQLAlchemyError:
            return _no_content()
        return jsonify(result.to_dict())

    @app.post("/group")
    def create_group():
        new_group = _json_body(NewGroup.from_dict)
        try:
            stored = group_service.create_group(engine, new_group)
        except InsertError:
            return _no_content()
        return _created(stored.to_dict())

    @app.get("/groups")
    def list_groups():
        found = group_service.list_groups(engine)
        return jsonify({"groups": [g.to_dict() for g in found], "count": len(found)})

    return app


def _port_from_env() -> int:
    load_dotenv(find_dotenv(usecwd=True))
    bind = os.environ.get("BIND")
    if bind is None:
        raise RuntimeError("BIND var is not available in .env")
    if not (bind.isascii() and bind.isdigit()) or int(bind) > _U16_MAX:
        raise ValueError("should be a valid port")
    return int(bind)


def main(argv: Optional[list[str]] = None) -> int:
    """Serve the blog API on the port named by BIND."""
    parser = argparse.ArgumentParser(
        prog="blogapi", description="Serve the blog API on the port given by BIND."
    )
    parser.parse_args(argv)
    port = _port_from_env()
    engine = establish_connection()
    create_app(engine).run(host="127.0.0.1", port=port)
    return 0