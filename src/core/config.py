import json
import os
import logging
from typing import Dict, Any, Literal, Optional
from pydantic import BaseModel, field_validator

CONFIG_FILE = "config.json"
DATA_DIR = "data"

PAGE_SIZE_OPTIONS = (10, 25, 50, 100)
DEFAULT_PAGE_SIZE = 25

logger = logging.getLogger(__name__)

class ViewPreferences(BaseModel):
    """Client-side view preferences, passed into the list views."""
    items_per_page: int = DEFAULT_PAGE_SIZE
    item_detail_per_page: int = DEFAULT_PAGE_SIZE
    view_size: Literal["small", "medium", "large"] = "medium"
    view_mode: Literal["table", "grid"] = "table"

    @field_validator('items_per_page', 'item_detail_per_page', mode='before')
    @classmethod
    def _known_page_size(cls, v: Any) -> int:
        try:
            size = int(v)
        except (TypeError, ValueError):
            return DEFAULT_PAGE_SIZE
        return size if size in PAGE_SIZE_OPTIONS else DEFAULT_PAGE_SIZE

class ConfigManager:
    def __init__(self, config_file: str = CONFIG_FILE):
        self.config_file = config_file
        self.config: Dict[str, Any] = self._load_config()

    def _load_config(self) -> Dict[str, Any]:
        if not os.path.exists(self.config_file):
            return self._default_config()

        try:
            with open(self.config_file, 'r', encoding='utf-8') as f:
                merged = self._default_config()
                merged.update(json.load(f))
                return merged
        except Exception as e:
            logger.warning(f"Could not read {self.config_file}, using defaults: {e}")
            return self._default_config()

    def _default_config(self) -> Dict[str, Any]:
        return {
            "data_dir": DATA_DIR,
            "storage_format": "json",
            "current_account": "local",
            "preferences": ViewPreferences().model_dump(),
        }

    def save_config(self):
        with open(self.config_file, 'w', encoding='utf-8') as f:
            json.dump(self.config, f, indent=2)

    def get_data_dir(self) -> str:
        return self.config.get("data_dir", DATA_DIR)

    def get_storage_format(self) -> str:
        return self.config.get("storage_format", "json")

    def get_current_account(self) -> Optional[str]:
        return self.config.get("current_account")

    def set_current_account(self, account_id: Optional[str]):
        self.config["current_account"] = account_id
        self.save_config()

    def get_preferences(self) -> ViewPreferences:
        return ViewPreferences(**self.config.get("preferences", {}))

    def save_preferences(self, prefs: ViewPreferences):
        self.config["preferences"] = prefs.model_dump()
        self.save_config()

config_manager = ConfigManager()
