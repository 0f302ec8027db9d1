import logging
from typing import Any, Dict, List, Optional

from src.core.errors import RecordNotFoundError
from src.core.models import ContainerWithZone, Item
from src.core.utils import generate_temp_id, utc_now_iso

logger = logging.getLogger(__name__)

class EditOverlay:
    """
    Uncommitted row edits, keyed by item id.

    The fetched item list is never touched; apply() merges the pending
    snapshots into a display copy. Clones live here under a temp- id until
    they are saved.
    """

    def __init__(self, containers: Optional[Dict[str, ContainerWithZone]] = None):
        self.containers: Dict[str, ContainerWithZone] = dict(containers or {})
        self._pending: Dict[str, Item] = {}
        self._new_ids: List[str] = []

    def set_containers(self, containers: Dict[str, ContainerWithZone]):
        self.containers = dict(containers)

    def is_editing(self, item_id: str) -> bool:
        return item_id in self._pending

    def is_new(self, item_id: str) -> bool:
        return item_id in self._new_ids

    def get(self, item_id: str) -> Item:
        if item_id not in self._pending:
            raise RecordNotFoundError(f"Row {item_id} is not being edited")
        return self._pending[item_id]

    def begin_edit(self, item: Item) -> Item:
        if item.id not in self._pending:
            self._pending[item.id] = item.model_copy(deep=True)
        return self._pending[item.id]

    def clone(self, item: Item) -> Item:
        now = utc_now_iso()
        copy = item.model_copy(deep=True, update={"id": generate_temp_id(), "created_at": now, "updated_at": now})
        self._pending[copy.id] = copy
        self._new_ids.insert(0, copy.id)
        return copy

    def update_field(self, item_id: str, field: str, value: Any) -> Item:
        snapshot = self.get(item_id)
        data = snapshot.model_dump()
        data[field] = value
        if field == "container_id":
            container = self.containers.get(value) if value else None
            data["container"] = container.model_dump() if container else None

        updated = type(snapshot)(**data)
        self._pending[item_id] = updated
        return updated

    def cancel(self, item_id: str):
        self._pending.pop(item_id, None)
        if item_id in self._new_ids:
            self._new_ids.remove(item_id)

    def save(self, item_id: str, service) -> Item:
        """
        Commits one row: clones are created, existing rows updated.
        The buffer is kept when the write fails so the user can fix it.
        """
        snapshot = self.get(item_id)
        data = snapshot.model_dump()
        if self.is_new(item_id):
            saved = service.create_item(snapshot.item_type, data)
        else:
            saved = service.update_item(snapshot.item_type, item_id, data)
        self.cancel(item_id)
        logger.info(f"Saved {snapshot.item_type} row {saved.id}")
        return saved

    def apply(self, items: List[Item]) -> List[Item]:
        clones = [self._pending[i] for i in self._new_ids]
        return clones + [self._pending.get(i.id, i) for i in items]
