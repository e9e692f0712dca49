"""
SQLite candidate source.

Each row of the ``cards`` table maps 1:1 to a CardRecord:

    name                TEXT PRIMARY KEY
    type                INTEGER   (CardType value)
    score               REAL      (ranking score, passed through)
    slice_uri           TEXT      (nullable for custom cards)
    package_name        TEXT
    app_version         INTEGER
    support_half_width  INTEGER   (0/1)

Rows are returned highest score first, ties in insertion order.
"""

from __future__ import annotations

import logging
import sqlite3
import threading
from typing import Iterator, Optional, Protocol

from ..domain import (
    UNKNOWN_APP_VERSION,
    CardRecord,
    CardType,
    CardValidationError,
    ContextCardsError,
    build_card,
)


logger = logging.getLogger(__name__)


CARD_TABLE = "cards"


class CardColumns:
    NAME = "name"
    TYPE = "type"
    SCORE = "score"
    SLICE_URI = "slice_uri"
    PACKAGE_NAME = "package_name"
    APP_VERSION = "app_version"
    SUPPORT_HALF_WIDTH = "support_half_width"


CREATE_CARD_TABLE = f"""
    CREATE TABLE IF NOT EXISTS {CARD_TABLE} (
        {CardColumns.NAME} TEXT NOT NULL PRIMARY KEY,
        {CardColumns.TYPE} INTEGER NOT NULL,
        {CardColumns.SCORE} REAL NOT NULL DEFAULT 0.0,
        {CardColumns.SLICE_URI} TEXT,
        {CardColumns.PACKAGE_NAME} TEXT NOT NULL,
        {CardColumns.APP_VERSION} INTEGER NOT NULL DEFAULT {UNKNOWN_APP_VERSION},
        {CardColumns.SUPPORT_HALF_WIDTH} INTEGER NOT NULL DEFAULT 0
    )
"""


# =============================================================================
# ERRORS
# =============================================================================

class CardSourceError(ContextCardsError):
    """Raised when the candidate source cannot be queried or iterated."""


class CardParseError(ContextCardsError):
    """Raised when one row cannot be turned into a CardRecord."""


# =============================================================================
# ROW PARSING
# =============================================================================

def parse_card_row(row: sqlite3.Row) -> CardRecord:
    """
    Convert one ``cards`` row into a CardRecord.

    Raises:
        CardParseError: Unknown card type, non-numeric score or version,
            or fields invalid for the variant
    """
    name = row[CardColumns.NAME]
    try:
        card_type = CardType(row[CardColumns.TYPE])
    except ValueError:
        raise CardParseError(
            f"row '{name}' has unknown card type {row[CardColumns.TYPE]!r}"
        ) from None

    score = row[CardColumns.SCORE]
    version = row[CardColumns.APP_VERSION]
    try:
        return build_card(
            card_type,
            name=name,
            package_name=row[CardColumns.PACKAGE_NAME],
            uri=row[CardColumns.SLICE_URI],
            ranking_score=float(score) if score is not None else 0.0,
            app_version=int(version) if version is not None else UNKNOWN_APP_VERSION,
            is_half_width=bool(row[CardColumns.SUPPORT_HALF_WIDTH]),
        )
    except (CardValidationError, TypeError, ValueError) as e:
        raise CardParseError(f"row '{name}': {e}") from e


# =============================================================================
# CURSOR
# =============================================================================

class CardCursor:
    """
    Forward-only, scoped view over the candidate rows.

    Use as a context manager; closing is idempotent.
    """

    def __init__(self, cursor: sqlite3.Cursor, count: int):
        self._cursor = cursor
        self._count = count
        self.closed = False

    @property
    def count(self) -> int:
        return self._count

    def __iter__(self) -> Iterator[sqlite3.Row]:
        if self.closed:
            raise CardSourceError("cursor is closed")
        try:
            for row in self._cursor:
                yield row
        except sqlite3.Error as e:
            raise CardSourceError(f"failed reading candidate rows: {e}") from e

    def close(self) -> None:
        if not self.closed:
            self.closed = True
            self._cursor.close()

    def __enter__(self) -> CardCursor:
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()


class CandidateSource(Protocol):
    def get_contextual_cards(self) -> CardCursor: ...


# =============================================================================
# DATABASE
# =============================================================================

class CardDatabase:
    """
    Candidate card store.

    Holds one connection for its lifetime. Loads run on a background worker,
    so the connection is opened with ``check_same_thread=False`` and writes
    are serialized with a lock.
    """

    def __init__(self, db_path: str = ":memory:"):
        self.db_path = db_path
        self._lock = threading.Lock()
        try:
            self._conn = sqlite3.connect(db_path, check_same_thread=False)
            self._conn.row_factory = sqlite3.Row
            with self._conn:
                self._conn.execute(CREATE_CARD_TABLE)
        except sqlite3.Error as e:
            raise CardSourceError(f"cannot open card database {db_path}: {e}") from e

    def get_contextual_cards(self) -> CardCursor:
        """Open a cursor over all candidate rows. Caller must close it."""
        try:
            count = self._conn.execute(
                f"SELECT COUNT(*) FROM {CARD_TABLE}"
            ).fetchone()[0]
            cursor = self._conn.execute(
                f"SELECT * FROM {CARD_TABLE} "
                f"ORDER BY {CardColumns.SCORE} DESC, rowid ASC"
            )
        except sqlite3.Error as e:
            raise CardSourceError(f"failed querying candidate cards: {e}") from e
        return CardCursor(cursor, count)

    def insert_row(
        self,
        name: str,
        card_type: int,
        package_name: str,
        uri: Optional[str] = None,
        score: float = 0.0,
        app_version: int = UNKNOWN_APP_VERSION,
        half_width: bool = False,
    ) -> None:
        """Insert or replace one raw row. Values are stored unvalidated."""
        with self._lock:
            try:
                with self._conn:
                    self._conn.execute(
                        f"INSERT OR REPLACE INTO {CARD_TABLE} ("
                        f"{CardColumns.NAME}, {CardColumns.TYPE}, "
                        f"{CardColumns.SCORE}, {CardColumns.SLICE_URI}, "
                        f"{CardColumns.PACKAGE_NAME}, {CardColumns.APP_VERSION}, "
                        f"{CardColumns.SUPPORT_HALF_WIDTH}"
                        f") VALUES (?, ?, ?, ?, ?, ?, ?)",
                        (name, card_type, score, uri, package_name,
                         app_version, int(half_width)),
                    )
            except sqlite3.Error as e:
                raise CardSourceError(f"failed inserting card '{name}': {e}") from e

    def insert_card(self, card: CardRecord) -> None:
        self.insert_row(
            name=card.name,
            card_type=card.card_type.value,
            package_name=card.package_name,
            uri=card.uri,
            score=card.ranking_score,
            app_version=card.app_version,
            half_width=card.is_half_width,
        )

    def close(self) -> None:
        self._conn.close()
