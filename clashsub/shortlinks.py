"""Short links: stored conversion requests looked up by a short id."""

from __future__ import annotations

import json
import sqlite3
import threading
from contextlib import contextmanager
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Iterator, Optional, Union

from .convert_config import ConvertConfig
from .errors import (
    CommonError,
    ErrorCode,
    database_connect_error,
    invalid_input_error,
    record_not_found_error,
)

DEFAULT_PATH = Path("data") / "clashsub.db"
TIMEOUT_SECONDS = 3.0

_UPDATABLE = ("config", "password", "last_request_time")

_SCHEMA = (
    "CREATE TABLE IF NOT EXISTS short_links ("
    "id TEXT UNIQUE, config TEXT, password TEXT, last_request_time INTEGER)"
)


@dataclass
class ShortLink:
    """A stored request with its id, access password and last use time."""

    id: str
    config: ConvertConfig = field(default_factory=ConvertConfig)
    password: str = ""
    last_request_time: int = 0


def _config_text(config: ConvertConfig) -> str:
    return json.dumps(config.to_dict(), ensure_ascii=False)


def _config_from_text(text: Optional[str]) -> ConvertConfig:
    if not text:
        return ConvertConfig()
    data = json.loads(text)
    return ConvertConfig() if data is None else ConvertConfig.from_dict(data)


class ShortLinkStore:
    """Short links kept in an SQLite database file."""

    def __init__(self, path: Union[str, "Path"] = DEFAULT_PATH) -> None:
        db_path = Path(path)
        db_path.parent.mkdir(parents=True, exist_ok=True)
        try:
            self._conn = sqlite3.connect(
                str(db_path), timeout=TIMEOUT_SECONDS, check_same_thread=False
            )
            with self._conn:
                self._conn.execute(_SCHEMA)
        except sqlite3.Error as exc:
            raise database_connect_error(exc) from exc
        self._lock = threading.Lock()

    @contextmanager
    def _transaction(self, action: str) -> Iterator[sqlite3.Connection]:
        with self._lock:
            try:
                with self._conn:
                    yield self._conn
            except sqlite3.Error as exc:
                raise CommonError(ErrorCode.DATABASE_QUERY, action, exc) from exc

    def find(self, link_id: str) -> ShortLink:
        """The link with ``link_id``; raises RECORD_NOT_FOUND if there is none."""
        with self._transaction(f"failed to find short link: {link_id}") as conn:
            row = conn.execute(
                "SELECT id, config, password, last_request_time FROM short_links "
                "WHERE id = ? LIMIT 1",
                (link_id,),
            ).fetchone()
        if row is None:
            raise record_not_found_error("short link", link_id)
        return ShortLink(
            id=row[0],
            config=_config_from_text(row[1]),
            password=row[2] or "",
            last_request_time=row[3] or 0,
        )

    def create(self, link: ShortLink) -> None:
        """Store a new link; an id already in use is an error."""
        with self._transaction(f"failed to create short link: {link.id}") as conn:
            conn.execute(
                "INSERT INTO short_links (id, config, password, last_request_time) "
                "VALUES (?, ?, ?, ?)",
                (link.id, _config_text(link.config), link.password, link.last_request_time),
            )

    def update(self, link_id: str, field: str, value: Any) -> None:
        """Set one column of a link; a missing link is silently left alone."""
        if field not in _UPDATABLE:
            raise invalid_input_error("field", field)
        if isinstance(value, ConvertConfig):
            value = _config_text(value)
        elif isinstance(value, dict):
            value = json.dumps(value, ensure_ascii=False)
        with self._transaction(f"failed to update short link: {link_id}") as conn:
            conn.execute(f"UPDATE short_links SET {field} = ? WHERE id = ?", (value, link_id))

    def exists(self, link_id: str) -> bool:
        """Whether a link with ``link_id`` is stored."""
        try:
            self.find(link_id)
        except CommonError as exc:
            if exc.code == ErrorCode.RECORD_NOT_FOUND:
                return False
            raise
        return True

    def delete(self, link_id: str) -> None:
        """Remove a link if it is stored."""
        with self._transaction(f"failed to delete short link: {link_id}") as conn:
            conn.execute("DELETE FROM short_links WHERE id = ?", (link_id,))

    def close(self) -> None:
        """Close the database."""
        self._conn.close()

    def __enter__(self) -> "ShortLinkStore":
        return self

    def __exit__(self, *exc_info: Any) -> None:
        self.close()