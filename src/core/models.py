from typing import List, Optional, Literal, Union, Any, Annotated
from pydantic import BaseModel, ConfigDict, Field, field_validator

from src.core.utils import to_int, to_float, is_blank, format_card_number

UNKNOWN_ZONE = "Unknown Zone"

# --- Location Models ---

class Zone(BaseModel):
    id: str
    name: str
    user_id: str
    created_at: str = ""
    updated_at: str = ""

class Container(BaseModel):
    id: str
    name: str
    user_id: str
    zone_id: Optional[str] = None
    created_at: str = ""
    updated_at: str = ""

class ContainerWithZone(Container):
    zone: Optional[Zone] = None

    @property
    def zone_name(self) -> str:
        return self.zone.name if self.zone else UNKNOWN_ZONE

# --- Item Models ---

class BaseItem(BaseModel):
    # Spreadsheet cells arrive as numbers for text columns (e.g. a numeric title)
    model_config = ConfigDict(coerce_numbers_to_str=True)

    id: str
    user_id: str
    container_id: Optional[str] = None
    created_at: str = ""
    updated_at: str = ""
    grade: Optional[float] = None
    condition: Optional[str] = None
    quantity: int = 1
    price: Optional[float] = None
    cost: Optional[float] = None
    description: Optional[str] = None
    container: Optional[ContainerWithZone] = None

    @field_validator('quantity', mode='before')
    @classmethod
    def _coerce_quantity(cls, v: Any) -> int:
        qty = to_int(v)
        if qty is None or qty < 1:
            return 1
        return qty

    @field_validator('grade', 'price', 'cost', mode='before')
    @classmethod
    def _coerce_optional_number(cls, v: Any) -> Optional[float]:
        return to_float(v)

    @field_validator('condition', 'description', mode='before')
    @classmethod
    def _blank_to_none(cls, v: Any) -> Optional[str]:
        if is_blank(v):
            return None
        return str(v).strip()

    @property
    def container_name(self) -> str:
        return self.container.name if self.container else ""

    @property
    def zone_name(self) -> str:
        return self.container.zone_name if self.container else ""

    @property
    def zone_id(self) -> Optional[str]:
        if self.container and self.container.zone:
            return self.container.zone.id
        return None

    def record_data(self) -> dict:
        """The persisted columns, without the resolved container or the kind tag."""
        return self.model_dump(exclude={'container', 'item_type', 'id', 'user_id', 'created_at', 'updated_at'})

class Card(BaseItem):
    item_type: Literal["card"] = "card"
    player: str = ""
    team: Optional[str] = None
    manufacturer: str = ""
    sport: str = ""
    year: Optional[int] = None
    number: str = ""
    number_out_of: Optional[int] = None
    is_rookie: bool = False

    @field_validator('player', 'manufacturer', 'sport', mode='before')
    @classmethod
    def _strip_text(cls, v: Any) -> Any:
        if v is None:
            return ""
        return v.strip() if isinstance(v, str) else v

    @field_validator('year', 'number_out_of', mode='before')
    @classmethod
    def _coerce_optional_int(cls, v: Any) -> Optional[int]:
        return to_int(v)

    @field_validator('team', mode='before')
    @classmethod
    def _blank_team(cls, v: Any) -> Optional[str]:
        if is_blank(v):
            return None
        return str(v).strip()

    @field_validator('number', mode='before')
    @classmethod
    def _number_as_text(cls, v: Any) -> str:
        if is_blank(v):
            return ""
        if isinstance(v, float) and v.is_integer():
            v = int(v)
        return str(v).strip()

    @field_validator('is_rookie', mode='before')
    @classmethod
    def _coerce_rookie(cls, v: Any) -> bool:
        if isinstance(v, str):
            return v.strip().lower() in ('yes', 'true', '1', 'y')
        return bool(v)

    @property
    def name(self) -> str:
        return self.player

    @property
    def number_display(self) -> str:
        return format_card_number(self.number, self.number_out_of)

    @property
    def details(self) -> str:
        year = self.year if self.year is not None else ''
        return f"{self.manufacturer or ''} {self.sport or ''} {year}"

class Comic(BaseItem):
    item_type: Literal["comic"] = "comic"
    title: str = ""
    publisher: str = ""
    issue: Optional[int] = None
    year: Optional[int] = None

    @field_validator('title', 'publisher', mode='before')
    @classmethod
    def _strip_text(cls, v: Any) -> Any:
        if v is None:
            return ""
        return v.strip() if isinstance(v, str) else v

    @field_validator('issue', 'year', mode='before')
    @classmethod
    def _coerce_optional_int(cls, v: Any) -> Optional[int]:
        return to_int(v)

    @property
    def name(self) -> str:
        return self.title

    @property
    def details(self) -> str:
        issue = self.issue if self.issue is not None else ''
        year = self.year if self.year is not None else ''
        return f"{self.publisher or ''} #{issue} ({year})"

Item = Annotated[Union[Card, Comic], Field(discriminator='item_type')]

ItemKind = Literal["card", "comic"]

# --- Derived Models ---

class GroupedItem(BaseModel):
    name: str
    total_count: int = 0
    total_cost: float = 0.0
    total_value: float = 0.0
    item_type: Literal["card", "comic", "mixed"] = "card"

class YearBreakdown(BaseModel):
    year: int  # -1 is the unknown-year bucket
    count: int = 0
    total_cost: float = 0.0
    total_value: float = 0.0
    items: List[Item] = []

    @property
    def label(self) -> str:
        return "Unknown" if self.year == -1 else str(self.year)

class BreakdownTotals(BaseModel):
    count: int = 0
    total_cost: float = 0.0
    total_value: float = 0.0

class RowError(BaseModel):
    row: int
    item_type: ItemKind
    message: str

class ReconciliationResult(BaseModel):
    cards_created: int = 0
    cards_updated: int = 0
    comics_created: int = 0
    comics_updated: int = 0
    errors: List[RowError] = []

    @property
    def processed(self) -> int:
        return self.cards_created + self.cards_updated + self.comics_created + self.comics_updated

    @property
    def success(self) -> bool:
        return self.processed > 0 and not self.errors

    @property
    def partial(self) -> bool:
        return self.processed > 0 and bool(self.errors)

    @property
    def failed(self) -> bool:
        return self.processed == 0

    @property
    def needs_refresh(self) -> bool:
        return self.processed > 0

    def add_error(self, row: int, item_type: str, message: str):
        self.errors.append(RowError(row=row, item_type=item_type, message=message))

class DashboardStats(BaseModel):
    zones: int = 0
    containers: int = 0
    items: int = 0
    recent_items: List[Item] = []
