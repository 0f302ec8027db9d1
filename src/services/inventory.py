import logging
from typing import Any, Dict, List, Optional

from src.core.constants import CARD_REQUIRED_FIELDS, COMIC_REQUIRED_FIELDS, RECENT_ITEMS_LIMIT
from src.core.errors import DuplicateRecordError, RecordNotFoundError, ValidationFailedError
from src.core.models import Card, Comic, ContainerWithZone, DashboardStats, Item, ItemKind, Zone
from src.core.utils import is_blank, parse_card_number
from src.services.item_normalizer import fetch_items, normalize_items, resolve_containers

logger = logging.getLogger(__name__)

TABLE_FOR_KIND = {"card": "cards", "comic": "comics"}

DUPLICATE_MESSAGES = {
    "card": "A card with the same player, team, manufacturer, sport, and year already exists in this container.",
    "comic": "A comic with the same title, publisher, issue, and year already exists in this container.",
}

NOT_FOUND_SUFFIX = "not found or belongs to another user"

def table_for(kind: str) -> str:
    if kind not in TABLE_FOR_KIND:
        raise ValueError(f"Unknown item type: {kind}")
    return TABLE_FOR_KIND[kind]

def build_item(kind: ItemKind, data: Dict[str, Any], user_id: str, item_id: str = "") -> Item:
    """
    Normalizes form or spreadsheet values into a Card or Comic.
    A card number like "12 out of 99" is split into number and number_out_of
    unless number_out_of is given explicitly.
    """
    values = {k: v for k, v in data.items() if k not in ("container", "item_type")}
    values["id"] = item_id
    values["user_id"] = user_id

    if kind == "card":
        number, out_of = parse_card_number(values.get("number"))
        values["number"] = number
        if is_blank(values.get("number_out_of")) and out_of is not None:
            values["number_out_of"] = out_of
        return Card(**values)
    if kind == "comic":
        return Comic(**values)
    raise ValueError(f"Unknown item type: {kind}")

def missing_fields(item: Item) -> List[str]:
    """Required fields that are blank on the item, container_id excluded."""
    required = CARD_REQUIRED_FIELDS if item.item_type == "card" else COMIC_REQUIRED_FIELDS
    return [f for f in required if is_blank(getattr(item, f))]

class InventoryService:
    """Single-record operations on zones, containers, cards and comics, scoped to the signed-in account."""

    def __init__(self, gateway, session):
        self.gateway = gateway
        self.session = session

    @property
    def user_id(self) -> str:
        return self.session.user_id

    def _scope(self, **filters) -> Dict[str, Any]:
        return {"user_id": self.user_id, **filters}

    # --- Zones ---

    def list_zones(self) -> List[Zone]:
        rows = self.gateway.select("zones", self._scope(), order_by="created_at", descending=True)
        return [Zone(**r) for r in rows]

    def get_zone(self, zone_id: str) -> Zone:
        rows = self.gateway.select("zones", self._scope(id=zone_id))
        if not rows:
            raise RecordNotFoundError(f"Zone {zone_id} {NOT_FOUND_SUFFIX}")
        return Zone(**rows[0])

    def create_zone(self, name: str) -> Zone:
        if is_blank(name):
            raise ValidationFailedError("Zone name is required", ["name"])
        row = self.gateway.insert("zones", {"name": name.strip(), "user_id": self.user_id})
        return Zone(**row)

    def update_zone(self, zone_id: str, name: str) -> Zone:
        if is_blank(name):
            raise ValidationFailedError("Zone name is required", ["name"])
        rows = self.gateway.update("zones", self._scope(id=zone_id), {"name": name.strip()})
        if not rows:
            raise RecordNotFoundError(f"Zone {zone_id} {NOT_FOUND_SUFFIX}")
        return Zone(**rows[0])

    def delete_zone(self, zone_id: str):
        # Containers keep their zone_id and display as "Unknown Zone"
        if not self.gateway.delete("zones", self._scope(id=zone_id)):
            raise RecordNotFoundError(f"Zone {zone_id} {NOT_FOUND_SUFFIX}")

    # --- Containers ---

    def _with_zones(self, rows: List[Dict[str, Any]]) -> List[ContainerWithZone]:
        zones = self.gateway.select("zones", self._scope())
        resolved = resolve_containers(rows, zones)
        return [resolved[r["id"]] for r in rows]

    def list_containers(self, order_by: str = "name") -> List[ContainerWithZone]:
        descending = order_by == "created_at"
        rows = self.gateway.select("containers", self._scope(), order_by=order_by, descending=descending)
        return self._with_zones(rows)

    def get_container(self, container_id: str) -> ContainerWithZone:
        rows = self.gateway.select("containers", self._scope(id=container_id))
        if not rows:
            raise RecordNotFoundError(f"Container {container_id} {NOT_FOUND_SUFFIX}")
        return self._with_zones(rows)[0]

    def _check_zone(self, zone_id: Optional[str]):
        if zone_id and not self.gateway.count("zones", self._scope(id=zone_id)):
            raise RecordNotFoundError(f"Zone {zone_id} {NOT_FOUND_SUFFIX}")

    def _check_container(self, container_id: str):
        if not self.gateway.count("containers", self._scope(id=container_id)):
            raise RecordNotFoundError(f"Container {container_id} {NOT_FOUND_SUFFIX}")

    def create_container(self, name: str, zone_id: Optional[str] = None) -> ContainerWithZone:
        if is_blank(name):
            raise ValidationFailedError("Container name is required", ["name"])
        self._check_zone(zone_id)
        row = self.gateway.insert("containers", {"name": name.strip(), "zone_id": zone_id or None, "user_id": self.user_id})
        return self._with_zones([row])[0]

    def update_container(self, container_id: str, name: str, zone_id: Optional[str] = None) -> ContainerWithZone:
        if is_blank(name):
            raise ValidationFailedError("Container name is required", ["name"])
        self._check_zone(zone_id)
        rows = self.gateway.update("containers", self._scope(id=container_id), {"name": name.strip(), "zone_id": zone_id or None})
        if not rows:
            raise RecordNotFoundError(f"Container {container_id} {NOT_FOUND_SUFFIX}")
        return self._with_zones(rows)[0]

    def delete_container(self, container_id: str):
        if not self.gateway.delete("containers", self._scope(id=container_id)):
            raise RecordNotFoundError(f"Container {container_id} {NOT_FOUND_SUFFIX}")

    def zone_containers(self, zone_id: str) -> List[ContainerWithZone]:
        rows = self.gateway.select("containers", self._scope(zone_id=zone_id), order_by="name")
        return self._with_zones(rows)

    def container_items(self, container_id: str) -> List[Item]:
        container = self.get_container(container_id)
        cards = self.gateway.select("cards", self._scope(container_id=container_id))
        comics = self.gateway.select("comics", self._scope(container_id=container_id))
        zones = [container.zone.model_dump()] if container.zone else []
        return normalize_items(cards, comics, [container.model_dump(exclude={"zone"})], zones)

    # --- Items ---

    def fetch_items(self) -> List[Item]:
        return fetch_items(self.gateway, self.user_id)

    def get_item(self, kind: ItemKind, item_id: str) -> Item:
        table = table_for(kind)
        rows = self.gateway.select(table, self._scope(id=item_id))
        if not rows:
            raise RecordNotFoundError(f"No {kind} found with id: {item_id} (or it belongs to another user)")
        containers = self.gateway.select("containers", self._scope())
        zones = self.gateway.select("zones", self._scope())
        if kind == "card":
            return normalize_items(rows, [], containers, zones)[0]
        return normalize_items([], rows, containers, zones)[0]

    def validate_item(self, item: Item):
        missing = missing_fields(item)
        if is_blank(item.container_id):
            missing.append("container_id")
        if missing:
            raise ValidationFailedError(f"Missing required fields: {', '.join(missing)}", missing)

    def check_duplicate(self, item: Item, exclude_id: Optional[str] = None):
        """Raises DuplicateRecordError when the same container already holds an item with this natural key."""
        if item.item_type == "card":
            key = {"player": item.player, "team": item.team, "manufacturer": item.manufacturer,
                   "sport": item.sport, "year": item.year}
        else:
            key = {"title": item.title, "publisher": item.publisher, "issue": item.issue, "year": item.year}

        candidates = self.gateway.select(table_for(item.item_type), self._scope(container_id=item.container_id))
        for row in candidates:
            if exclude_id and row.get("id") == exclude_id:
                continue
            if all((row.get(k) or None) == (v or None) for k, v in key.items()):
                raise DuplicateRecordError(DUPLICATE_MESSAGES[item.item_type])

    def create_item(self, kind: ItemKind, data: Dict[str, Any]) -> Item:
        item = build_item(kind, data, self.user_id)
        self.validate_item(item)
        self._check_container(item.container_id)
        self.check_duplicate(item)
        row = self.gateway.insert(table_for(kind), {**item.record_data(), "user_id": self.user_id})
        logger.info(f"Created {kind} {row['id']}")
        return self.get_item(kind, row["id"])

    def update_item(self, kind: ItemKind, item_id: str, data: Dict[str, Any]) -> Item:
        """Replaces every editable field of the item with the values in data."""
        item = build_item(kind, data, self.user_id, item_id)
        self.validate_item(item)
        self._check_container(item.container_id)
        self.check_duplicate(item, exclude_id=item_id)
        rows = self.gateway.update(table_for(kind), self._scope(id=item_id), item.record_data())
        if not rows:
            raise RecordNotFoundError(f"No {kind} found with id: {item_id} (or it belongs to another user)")
        logger.info(f"Updated {kind} {item_id}")
        return self.get_item(kind, item_id)

    def delete_item(self, kind: ItemKind, item_id: str):
        if not self.gateway.delete(table_for(kind), self._scope(id=item_id)):
            raise RecordNotFoundError(f"No {kind} found with id: {item_id} (or it belongs to another user)")
        logger.info(f"Deleted {kind} {item_id}")

    # --- Dashboard ---

    def dashboard_stats(self, items: Optional[List[Item]] = None) -> DashboardStats:
        """Counts and the most recent items. Pass already fetched items to avoid a second read."""
        if items is None:
            items = self.fetch_items()
        return DashboardStats(
            zones=self.gateway.count("zones", self._scope()),
            containers=self.gateway.count("containers", self._scope()),
            items=len(items),
            recent_items=items[:RECENT_ITEMS_LIMIT],
        )
