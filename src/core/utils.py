import re
import math
import uuid
from datetime import datetime, timezone
from typing import Any, Optional, Tuple

# "12 out of 99", "12 of 99", "12/99"
CARD_NUMBER_OUT_OF_REGEX = re.compile(r'^\s*([^\s/]+)\s*(?:/|\bout\s+of\b|\bof\b)\s*(\d+)\s*$', re.IGNORECASE)

EMPTY_DISPLAY = "—"

def is_blank(value: Any) -> bool:
    """True for None, empty and whitespace-only strings."""
    if value is None:
        return True
    if isinstance(value, str) and value.strip() == "":
        return True
    return False

def to_int(value: Any) -> Optional[int]:
    """
    Lenient integer coercion used for spreadsheet cells and form values.
    Blank or unparsable values become None. Floats are truncated like parseInt.
    """
    if is_blank(value) or isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, float):
        if math.isnan(value) or math.isinf(value):
            return None
        return int(value)

    match = re.match(r'^\s*([+-]?\d+)', str(value))
    if not match:
        return None
    return int(match.group(1))

def to_float(value: Any) -> Optional[float]:
    if is_blank(value) or isinstance(value, bool):
        return None
    try:
        result = float(value)
    except (TypeError, ValueError):
        return None
    if math.isnan(result) or math.isinf(result):
        return None
    return result

def parse_card_number(raw: Any) -> Tuple[str, Optional[int]]:
    """
    Splits a card number into (number, number_out_of).
    e.g. "12 out of 99" -> ("12", 99)
         "12/99"        -> ("12", 99)
         "RC-7"         -> ("RC-7", None)
    """
    if is_blank(raw):
        return "", None
    if isinstance(raw, float) and raw.is_integer():
        raw = int(raw)

    text = str(raw).strip()
    match = CARD_NUMBER_OUT_OF_REGEX.match(text)
    if match:
        return match.group(1), int(match.group(2))
    return text, None

def format_card_number(number: Optional[str], number_out_of: Optional[int] = None) -> str:
    if not number:
        return ""
    if number_out_of:
        return f"{number}/{number_out_of}"
    return number

def format_money(value: Optional[float]) -> str:
    if value is None:
        return EMPTY_DISPLAY
    return f"${value:,.2f}"

def utc_now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()

def generate_id() -> str:
    return str(uuid.uuid4())

def generate_temp_id() -> str:
    """Identifier for a cloned row that has not been saved yet."""
    return f"temp-{uuid.uuid4().hex[:12]}"

def is_temp_id(item_id: str) -> bool:
    return item_id.startswith("temp-")
