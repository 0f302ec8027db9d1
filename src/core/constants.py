CARDS_SHEET = "Cards"
COMICS_SHEET = "Comics"

CARD_COLUMNS = [
    "id", "container_name", "zone_name", "grade", "condition", "quantity",
    "player", "team", "manufacturer", "sport", "year", "number", "number_out_of",
    "is_rookie", "price", "cost", "description",
]

COMIC_COLUMNS = [
    "id", "container_name", "zone_name", "grade", "condition", "quantity",
    "title", "publisher", "issue", "year", "price", "cost", "description",
]

CARD_REQUIRED_FIELDS = ["player", "manufacturer", "sport", "year", "number"]
COMIC_REQUIRED_FIELDS = ["title", "publisher", "issue", "year"]

EXPORT_FILENAME_PREFIX = "hotzone-items"

UNKNOWN_NAME = "Unknown"
UNKNOWN_YEAR = -1

TABS = ["all", "card", "comic", "graded-card", "graded-comic"]

TAB_LABELS = {
    "all": "All Items",
    "card": "Cards",
    "comic": "Comics",
    "graded-card": "Graded Cards",
    "graded-comic": "Graded Comics",
}

SORT_COLUMNS = [
    "type", "name", "details", "cardNumber", "team", "container", "zone",
    "condition", "description", "quantity", "grade", "price", "cost", "year",
    "isRookie", "profitLoss",
]

RECENT_ITEMS_LIMIT = 5
