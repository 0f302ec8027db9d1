import json
import logging
from collections import defaultdict
from datetime import date
from typing import Any, Dict, List, Optional, Set, Tuple

from src.core.constants import (
    CARD_COLUMNS, CARDS_SHEET, COMIC_COLUMNS, COMICS_SHEET, EXPORT_FILENAME_PREFIX,
)
from src.core.errors import DuplicateRecordError, InventoryError
from src.core.models import ContainerWithZone, Item, ReconciliationResult
from src.core.utils import is_blank
from src.services.inventory import build_item, missing_fields, table_for
from src.services.item_normalizer import resolve_containers
from src.services.spreadsheet import SheetRows, read_workbook, write_workbook

logger = logging.getLogger(__name__)

DUPLICATE_ROW_MESSAGE = "Duplicate entry: This row is identical to another row in the Excel file"
MISSING_SHEETS_MESSAGE = 'Excel file must contain "Cards" and/or "Comics" sheets'
AMBIGUOUS_CONTAINER_MESSAGE = 'Container "{name}" is ambiguous: {count} containers share this name and zone_name does not pick one'

REQUIRED_MESSAGES = {
    "card": "Missing required fields: player, manufacturer, sport, year, or number",
    "comic": "Missing required fields: title, publisher, issue, or year",
}

DUPLICATE_CREATE_MESSAGES = {
    "card": "Duplicate card (same player, team, manufacturer, sport, year already exists)",
    "comic": "Duplicate comic (same title, publisher, issue, year already exists)",
}

SHEET_KINDS = ((CARDS_SHEET, "card"), (COMICS_SHEET, "comic"))

def _row_id(row: Dict[str, Any]) -> str:
    raw = row.get("id")
    if is_blank(raw):
        return ""
    if isinstance(raw, float) and raw.is_integer():
        raw = int(raw)
    return str(raw).strip()

def _row_key(item: Item, item_id: str) -> str:
    """Composite key of a parsed row: container, id and every value, text compared case-insensitively."""
    values = item.record_data()
    normalized = {k: (v.strip().lower() if isinstance(v, str) else v) for k, v in values.items()}
    normalized["id"] = item_id
    return json.dumps(normalized, sort_keys=True, default=str)

class BulkImporter:
    """
    Reconciles an uploaded two-sheet workbook with the signed-in account's items.

    Rows with an id update that record, rows without one are created. Every
    row is handled on its own: a bad row adds an error and the next row is
    processed. Errors are reported in sheet order, Cards first.
    """

    def __init__(self, gateway, session):
        self.gateway = gateway
        self.session = session

    def import_workbook(self, content: bytes) -> ReconciliationResult:
        result = ReconciliationResult()
        user_id = self.session.user_id

        try:
            sheets = read_workbook(content, [CARDS_SHEET, COMICS_SHEET])
        except Exception as e:
            logger.error(f"Failed to read uploaded workbook: {e}")
            result.add_error(0, "card", f"Failed to process file: {e}")
            return result

        if not sheets:
            logger.warning("Uploaded workbook has neither a Cards nor a Comics sheet")
            result.add_error(0, "card", MISSING_SHEETS_MESSAGE)
            return result

        containers = self._load_containers(user_id)

        for sheet_name, kind in SHEET_KINDS:
            rows = sheets.get(sheet_name, [])
            logger.info(f"Importing {len(rows)} {kind} rows")
            duplicates = self._find_duplicate_rows(rows, kind, containers, user_id)
            for row_number, row in rows:
                if row_number in duplicates:
                    result.add_error(row_number, kind, DUPLICATE_ROW_MESSAGE)
                    continue
                self._process_row(result, kind, row_number, row, containers, user_id)

        logger.info(
            f"Import finished: {result.cards_created} cards created, {result.cards_updated} cards updated, "
            f"{result.comics_created} comics created, {result.comics_updated} comics updated, "
            f"{len(result.errors)} errors"
        )
        return result

    def _load_containers(self, user_id: str) -> List[ContainerWithZone]:
        rows = self.gateway.select("containers", {"user_id": user_id})
        zones = self.gateway.select("zones", {"user_id": user_id})
        return list(resolve_containers(rows, zones).values())

    def _text_cell(self, row: Dict[str, Any], column: str) -> str:
        raw = row.get(column)
        return "" if is_blank(raw) else str(raw).strip()

    def _resolve_container(self, row: Dict[str, Any], containers: List[ContainerWithZone]) -> Tuple[Optional[ContainerWithZone], str]:
        """
        Matches the row's container_name case-insensitively.
        Containers sharing a name are told apart by the row's zone_name.
        Returns (container, "") or (None, error message).
        """
        name = self._text_cell(row, "container_name")
        if not name:
            return None, "Missing container_name"

        matches = [c for c in containers if c.name.lower() == name.lower()]
        if not matches:
            return None, f'Container "{name}" not found'
        if len(matches) == 1:
            return matches[0], ""

        zone_name = self._text_cell(row, "zone_name").lower()
        in_zone = [c for c in matches if zone_name and c.zone_name.lower() == zone_name]
        if len(in_zone) == 1:
            return in_zone[0], ""
        return None, AMBIGUOUS_CONTAINER_MESSAGE.format(name=name, count=len(matches))

    def _find_duplicate_rows(self, rows: SheetRows, kind: str, containers: List[ContainerWithZone], user_id: str) -> Set[int]:
        """Sheet rows that are identical to another row of the same sheet. Unresolvable rows are left to validation."""
        keys: Dict[str, List[int]] = defaultdict(list)
        for row_number, row in rows:
            container, _ = self._resolve_container(row, containers)
            if container is None:
                continue
            try:
                item = build_item(kind, {**row, "container_id": container.id}, user_id, _row_id(row))
            except ValueError:
                continue
            keys[_row_key(item, _row_id(row))].append(row_number)

        duplicates = {n for numbers in keys.values() if len(numbers) > 1 for n in numbers}
        if duplicates:
            logger.warning(f"Found {len(duplicates)} duplicate {kind} rows in upload")
        return duplicates

    def _process_row(self, result: ReconciliationResult, kind: str, row_number: int, row: Dict[str, Any],
                     containers: List[ContainerWithZone], user_id: str):
        container, error = self._resolve_container(row, containers)
        if container is None:
            result.add_error(row_number, kind, error)
            return

        item_id = _row_id(row)
        try:
            item = build_item(kind, {**row, "container_id": container.id}, user_id, item_id)
        except ValueError as e:
            result.add_error(row_number, kind, f"Error: {e}")
            return

        if missing_fields(item):
            result.add_error(row_number, kind, REQUIRED_MESSAGES[kind])
            return

        table = table_for(kind)
        if item_id:
            try:
                updated = self.gateway.update(table, {"id": item_id, "user_id": user_id}, item.record_data())
            except InventoryError as e:
                logger.error(f"Row {row_number}: update of {kind} {item_id} failed: {e}")
                result.add_error(row_number, kind, f"Update failed: {e}")
                return
            if not updated:
                result.add_error(row_number, kind, f"No {kind} found with id: {item_id} (or it belongs to another user)")
                return
            if kind == "card":
                result.cards_updated += 1
            else:
                result.comics_updated += 1
            return

        try:
            self.gateway.insert(table, {**item.record_data(), "user_id": user_id})
        except DuplicateRecordError:
            result.add_error(row_number, kind, DUPLICATE_CREATE_MESSAGES[kind])
            return
        except InventoryError as e:
            logger.error(f"Row {row_number}: create of {kind} failed: {e}")
            result.add_error(row_number, kind, f"Create failed: {e}")
            return

        if kind == "card":
            result.cards_created += 1
        else:
            result.comics_created += 1

# --- Export ---

def _export_row(item: Item) -> Dict[str, Any]:
    row = {
        "id": item.id,
        "container_name": item.container_name,
        "zone_name": item.zone_name,
        "grade": item.grade,
        "condition": item.condition,
        "quantity": item.quantity,
        "year": item.year,
        "price": item.price,
        "cost": item.cost,
        "description": item.description,
    }
    if item.item_type == "card":
        row.update({
            "player": item.player,
            "team": item.team,
            "manufacturer": item.manufacturer,
            "sport": item.sport,
            "number": item.number,
            "number_out_of": item.number_out_of,
            "is_rookie": "Yes" if item.is_rookie else "No",
        })
    else:
        row.update({
            "title": item.title,
            "publisher": item.publisher,
            "issue": item.issue,
        })
    return row

def export_workbook(items: List[Item]) -> bytes:
    """Writes the given (already filtered and sorted) items to a Cards/Comics workbook."""
    cards = [_export_row(i) for i in items if i.item_type == "card"]
    comics = [_export_row(i) for i in items if i.item_type == "comic"]
    logger.info(f"Exporting {len(cards)} cards and {len(comics)} comics")
    return write_workbook([
        (CARDS_SHEET, CARD_COLUMNS, cards),
        (COMICS_SHEET, COMIC_COLUMNS, comics),
    ])

def export_filename(on: Optional[date] = None) -> str:
    return f"{EXPORT_FILENAME_PREFIX}-{(on or date.today()).isoformat()}.xlsx"
