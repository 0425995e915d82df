"""Backing store primitives used by the CV repository."""

import asyncio
import copy
import logging
import uuid
from abc import ABC, abstractmethod
from collections import defaultdict
from pathlib import Path
from typing import Any, Dict, List, Optional

import yaml

from cv_builder.services.errors import StoreOperationError

logger = logging.getLogger(__name__)

ROOT_TABLE = "professional_cvs"
ROOT_PARENT_COLUMN = "professional_id"
SECTION_PARENT_COLUMN = "cv_id"

Row = Dict[str, Any]


def parent_column(table: str) -> str:
    """Column holding the parent key for a table."""
    return ROOT_PARENT_COLUMN if table == ROOT_TABLE else SECTION_PARENT_COLUMN


class BackingStore(ABC):
    """
    Minimal async storage contract.

    Implementations may be SQL, a document store or an HTTP API. Rows are
    plain dicts keyed by column name; the store assigns ``id``.
    """

    @abstractmethod
    async def get_by_parent(self, table: str, parent_key: str) -> Optional[Row]:
        """Return the single row owned by ``parent_key`` or None."""

    @abstractmethod
    async def list_by_parent(self, table: str, parent_key: str, order_by: str = "display_order") -> List[Row]:
        """Return every row owned by ``parent_key`` sorted ascending by ``order_by``."""

    @abstractmethod
    async def delete_by_parent(self, table: str, parent_key: str) -> int:
        """Delete every row owned by ``parent_key``; return the number removed."""

    @abstractmethod
    async def bulk_insert(self, table: str, rows: List[Row]) -> List[Row]:
        """Insert rows and return them with their assigned ids."""

    @abstractmethod
    async def upsert_root(self, parent_key: str, fields: Row) -> Row:
        """Insert or update the CV root owned by ``parent_key``."""


class InMemoryStore(BackingStore):
    """Dict-backed store. Every primitive is a suspension point."""

    def __init__(self, latency: float = 0.0):
        """
        Initialize the in-memory store.

        Args:
            latency: Seconds each primitive sleeps, to mimic a network round-trip
        """
        self.latency = latency
        self._tables: Dict[str, List[Row]] = defaultdict(list)

    async def _io(self) -> None:
        await asyncio.sleep(self.latency)

    def _new_id(self) -> str:
        return str(uuid.uuid4())

    def _commit(self, table: str, rows: List[Row]) -> None:
        """Replace a table's rows. Subclasses persist them first and raise to abort."""
        self._tables[table] = rows

    def rows(self, table: str) -> List[Row]:
        """Return a copy of a table's raw rows (for inspection)."""
        return copy.deepcopy(self._tables[table])

    async def get_by_parent(self, table: str, parent_key: str) -> Optional[Row]:
        await self._io()
        column = parent_column(table)
        for row in self._tables[table]:
            if row.get(column) == parent_key:
                return copy.deepcopy(row)
        return None

    async def list_by_parent(self, table: str, parent_key: str, order_by: str = "display_order") -> List[Row]:
        await self._io()
        column = parent_column(table)
        matches = [copy.deepcopy(row) for row in self._tables[table] if row.get(column) == parent_key]
        # Rows without an order value sort last
        matches.sort(key=lambda row: (row.get(order_by) is None, row.get(order_by) or 0))
        return matches

    async def delete_by_parent(self, table: str, parent_key: str) -> int:
        await self._io()
        column = parent_column(table)
        current = self._tables[table]
        kept = [row for row in current if row.get(column) != parent_key]
        self._commit(table, kept)
        return len(current) - len(kept)

    async def bulk_insert(self, table: str, rows: List[Row]) -> List[Row]:
        await self._io()
        column = parent_column(table)
        inserted = []
        for row in rows:
            if not row.get(column):
                raise StoreOperationError(table, "insert", f"missing {column}")
            stored = copy.deepcopy(row)
            stored["id"] = self._new_id()
            inserted.append(stored)
        self._commit(table, self._tables[table] + inserted)
        return copy.deepcopy(inserted)

    async def upsert_root(self, parent_key: str, fields: Row) -> Row:
        await self._io()
        if not parent_key:
            raise StoreOperationError(ROOT_TABLE, "upsert", f"missing {ROOT_PARENT_COLUMN}")
        current = self._tables[ROOT_TABLE]
        for index, row in enumerate(current):
            if row[ROOT_PARENT_COLUMN] == parent_key:
                updated = {**row, **copy.deepcopy(fields)}
                self._commit(ROOT_TABLE, current[:index] + [updated] + current[index + 1:])
                return copy.deepcopy(updated)
        row = {"id": self._new_id(), ROOT_PARENT_COLUMN: parent_key, **copy.deepcopy(fields)}
        self._commit(ROOT_TABLE, current + [row])
        return copy.deepcopy(row)


class YamlFileStore(InMemoryStore):
    """In-memory store mirrored to one YAML file per table."""

    def __init__(self, data_dir: Path, latency: float = 0.0):
        """
        Initialize the YAML file store.

        Args:
            data_dir: Directory holding ``<table>.yaml`` files. Created if missing.
            latency: Seconds each primitive sleeps
        """
        super().__init__(latency=latency)
        self.data_dir = Path(data_dir)
        self.data_dir.mkdir(parents=True, exist_ok=True)
        self._load_tables()

    def _table_path(self, table: str) -> Path:
        return self.data_dir / f"{table}.yaml"

    def _load_tables(self) -> None:
        for filepath in sorted(self.data_dir.glob("*.yaml")):
            try:
                with open(filepath, "r", encoding="utf-8") as f:
                    rows = yaml.safe_load(f) or []
            except yaml.YAMLError as e:
                raise ValueError(f"Invalid YAML format in {filepath}: {e}")
            if not isinstance(rows, list):
                raise ValueError(f"Expected a list of rows in {filepath}")
            self._tables[filepath.stem] = rows
            logger.debug("Loaded %d rows from %s", len(rows), filepath)

    def _commit(self, table: str, rows: List[Row]) -> None:
        # Memory changes only after the table file has been replaced
        filepath = self._table_path(table)
        tmp_path = filepath.with_name(f"{filepath.name}.tmp")
        try:
            with open(tmp_path, "w", encoding="utf-8") as f:
                yaml.safe_dump(rows, f, allow_unicode=True, sort_keys=False)
            tmp_path.replace(filepath)
        except OSError as e:
            tmp_path.unlink(missing_ok=True)
            raise StoreOperationError(table, "write", str(e)) from e
        super()._commit(table, rows)
