import unicodedata
from typing import Optional, Tuple

def _strip_accents(text: str) -> str:
    decomposed = unicodedata.normalize('NFKD', text)
    return "".join(c for c in decomposed if not unicodedata.combining(c))

def locale_sort_key(text: Optional[str]) -> Tuple[str, str, str]:
    """
    Sort key approximating a locale-aware collation:
    1. Primary: letters without accents or case ("apple" == "Äpple").
    2. Secondary: accents.
    3. Tertiary: case, lowercase first ("mantle" < "Mantle").
    """
    if not text:
        return ("", "", "")
    primary = _strip_accents(text).casefold()
    secondary = text.casefold()
    tertiary = text.swapcase()
    return (primary, secondary, tertiary)

def locale_compare(a: Optional[str], b: Optional[str]) -> int:
    ka, kb = locale_sort_key(a), locale_sort_key(b)
    if ka < kb:
        return -1
    if ka > kb:
        return 1
    return 0

def contains_ci(haystack: Optional[str], needle: str) -> bool:
    """Case-insensitive substring match. A missing haystack never matches."""
    if haystack is None:
        return False
    return needle.lower() in str(haystack).lower()
