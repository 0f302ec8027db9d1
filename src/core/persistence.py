import json
import yaml
import os
import time
import logging
import threading
import uuid
from typing import Any, Dict, List, Optional

from src.core.config import config_manager
from src.core.errors import DuplicateRecordError, GatewayError
from src.core.utils import generate_id, utc_now_iso

logger = logging.getLogger(__name__)

TABLES = ("zones", "containers", "cards", "comics")

# Natural keys enforced on insert/update, always scoped to the owner and container.
UNIQUE_KEYS = {
    "cards": ("user_id", "container_id", "player", "team", "manufacturer", "sport", "year"),
    "comics": ("user_id", "container_id", "title", "publisher", "issue", "year"),
}

def _key_value(value: Any) -> Any:
    return "" if value is None else value

def _matches(record: Dict[str, Any], filters: Optional[Dict[str, Any]]) -> bool:
    if not filters:
        return True
    return all(record.get(field) == value for field, value in filters.items())

class PersistenceManager:
    """
    File-backed record store for zones, containers, cards and comics.
    One file per table, cached in memory, written atomically on every change.
    """

    def __init__(self, data_dir: str = "data", fmt: str = "json"):
        if fmt not in ("json", "yaml"):
            raise ValueError(f"Unsupported storage format: {fmt}")
        self.data_dir = data_dir
        self.fmt = fmt
        self._cache: Dict[str, List[Dict[str, Any]]] = {}
        self._locks = {table: threading.RLock() for table in TABLES}
        os.makedirs(self.data_dir, exist_ok=True)

    def _path(self, table: str) -> str:
        ext = "json" if self.fmt == "json" else "yaml"
        return os.path.join(self.data_dir, f"{table}.{ext}")

    def _check_table(self, table: str):
        if table not in TABLES:
            raise ValueError(f"Unknown table: {table}")

    def _load(self, table: str) -> List[Dict[str, Any]]:
        if table in self._cache:
            return self._cache[table]

        filepath = self._path(table)
        rows: List[Dict[str, Any]] = []
        if os.path.exists(filepath):
            try:
                with open(filepath, 'r', encoding='utf-8') as f:
                    if self.fmt == "json":
                        data = json.load(f)
                    else:
                        data = yaml.safe_load(f)
                rows = list(data or [])
            except (OSError, ValueError, yaml.YAMLError) as e:
                logger.error(f"Error loading table {table}: {e}")
                raise GatewayError(f"Could not read {table}: {e}") from e

        self._cache[table] = rows
        return rows

    def _write(self, table: str, rows: List[Dict[str, Any]]):
        filepath = self._path(table)
        # Use UUID to prevent collisions if multiple saves run concurrently
        temp_filepath = filepath + f".{uuid.uuid4()}.tmp"

        try:
            with open(temp_filepath, 'w', encoding='utf-8') as f:
                if self.fmt == "json":
                    json.dump(rows, f, indent=2)
                else:
                    yaml.safe_dump(rows, f, allow_unicode=True, sort_keys=False)
                f.flush()
                os.fsync(f.fileno())

            # Retry logic for Windows file locking issues
            max_retries = 3
            for attempt in range(max_retries):
                try:
                    os.replace(temp_filepath, filepath)
                    break
                except PermissionError:
                    if attempt < max_retries - 1:
                        time.sleep(0.1)
                    else:
                        raise
        except OSError as e:
            logger.error(f"Error saving table {table}: {e}")
            if os.path.exists(temp_filepath):
                try:
                    os.remove(temp_filepath)
                except OSError as cleanup_error:
                    logger.warning(f"Could not remove temp file {temp_filepath}: {cleanup_error}")
            # Drop the cache so the next read reflects what is actually on disk
            self._cache.pop(table, None)
            raise GatewayError(f"Could not write {table}: {e}") from e

        self._cache[table] = rows

    def _check_unique(self, table: str, rows: List[Dict[str, Any]], candidate: Dict[str, Any], exclude_id: Optional[str] = None):
        key_fields = UNIQUE_KEYS.get(table)
        if not key_fields:
            return
        key = tuple(_key_value(candidate.get(k)) for k in key_fields)
        for row in rows:
            if exclude_id is not None and row.get("id") == exclude_id:
                continue
            if tuple(_key_value(row.get(k)) for k in key_fields) == key:
                raise DuplicateRecordError(
                    f"Duplicate key in {table}: ({', '.join(key_fields[2:])}) already exists"
                )

    # --- Queries ---

    def select(self, table: str, filters: Optional[Dict[str, Any]] = None,
               order_by: Optional[str] = None, descending: bool = False) -> List[Dict[str, Any]]:
        """Returns copies of the rows matching every equality filter."""
        self._check_table(table)
        with self._locks[table]:
            res = [dict(r) for r in self._load(table) if _matches(r, filters)]

        if order_by:
            # Missing values always sort after present ones
            present = [r for r in res if r.get(order_by) is not None]
            missing = [r for r in res if r.get(order_by) is None]
            present.sort(key=lambda r: r[order_by], reverse=descending)
            res = present + missing
        return res

    def count(self, table: str, filters: Optional[Dict[str, Any]] = None) -> int:
        self._check_table(table)
        with self._locks[table]:
            return sum(1 for r in self._load(table) if _matches(r, filters))

    # --- Writes ---

    def insert(self, table: str, record: Dict[str, Any]) -> Dict[str, Any]:
        self._check_table(table)
        now = utc_now_iso()
        new_row = dict(record)
        new_row["id"] = new_row.get("id") or generate_id()
        new_row.setdefault("created_at", now)
        new_row["updated_at"] = now

        with self._locks[table]:
            rows = self._load(table)
            self._check_unique(table, rows, new_row)
            self._write(table, rows + [new_row])

        logger.info(f"Inserted {table} record {new_row['id']}")
        return dict(new_row)

    def update(self, table: str, filters: Dict[str, Any], values: Dict[str, Any]) -> List[Dict[str, Any]]:
        """Updates every matching row and returns the updated rows (empty when none matched)."""
        self._check_table(table)
        changes = {k: v for k, v in values.items() if k not in ("id", "user_id", "created_at")}
        now = utc_now_iso()

        with self._locks[table]:
            rows = self._load(table)
            updated: List[Dict[str, Any]] = []
            new_rows: List[Dict[str, Any]] = []
            for row in rows:
                if _matches(row, filters):
                    row = {**row, **changes, "updated_at": now}
                    updated.append(row)
                new_rows.append(row)

            if not updated:
                return []

            for row in updated:
                others = [r for r in new_rows if r is not row]
                self._check_unique(table, others, row, exclude_id=row.get("id"))
            self._write(table, new_rows)

        logger.info(f"Updated {len(updated)} {table} record(s)")
        return [dict(r) for r in updated]

    def delete(self, table: str, filters: Dict[str, Any]) -> int:
        """Deletes every matching row and returns the number removed."""
        self._check_table(table)
        with self._locks[table]:
            rows = self._load(table)
            kept = [r for r in rows if not _matches(r, filters)]
            removed = len(rows) - len(kept)
            if removed:
                self._write(table, kept)

        if removed:
            logger.info(f"Deleted {removed} {table} record(s)")
        return removed

# Global instance
persistence = PersistenceManager(config_manager.get_data_dir(), config_manager.get_storage_format())
