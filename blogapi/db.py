"""Database connection setup and error reporting."""

from __future__ import annotations

import os
from dataclasses import dataclass
from typing import Optional

from dotenv import find_dotenv, load_dotenv
from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.exc import SQLAlchemyError


class InsertError(Exception):
    """Raised when a record could not be stored."""


@dataclass
class ErrorResponse:
    message: str

    @classmethod
    def from_exception(cls, exc: BaseException) -> "ErrorResponse":
        return cls(message=f"Database Error: {exc}")

    def to_dict(self) -> dict[str, str]:
        return {"message": self.message}


def database_url() -> str:
    """Return DATABASE_URL from the environment or a .env file."""
    load_dotenv(find_dotenv(usecwd=True))
    url = os.environ.get("DATABASE_URL")
    if url is None:
        raise RuntimeError("DATABASE_URL must be set")
    return url


def establish_connection(url: Optional[str] = None) -> Engine:
    """Create an engine for the database and check that it can be reached."""
    if url is None:
        url = database_url()
    try:
        engine = create_engine(url)
        with engine.connect():
            pass
    except (SQLAlchemyError, ImportError) as exc:
        raise ConnectionError(f"Error connecting to {url}") from exc
    return engine