"""Default configuration constants for banquet seating."""

# Attribute bag aliases. Exact keys are tried first, then a loose match
# (trimmed, case folded, whitespace collapsed).
VIP_KEYS = ("VIP", "vip")
RSVP_KEYS = ("Zusage", "zusage")
ATTENDING_KEYS = ("Nimmt teil", "nimmt teil")
FEMALE_KEYS = ("Weiblich", "weiblich")
COLOR_KEYS = ("Tischfarbe", "tischfarbe")
PRESS_KEYS = ("Presse", "presse")

# Loose truthy encodings (compared after strip + lower)
TRUTHY_STRINGS = frozenset({"true", "ja", "yes", "1"})
VIP_TRUTHY_STRINGS = frozenset({"true"})

# Color tags in allocation order. "" is the untagged block.
COLOR_TAGS = ("", "1", "2", "3", "4")

# Defaults for the front ends
DEFAULT_NUM_TABLES = 10
DEFAULT_SEATS_PER_TABLE = 10

# Guest CSV columns. Any other column is treated as an attribute.
ID_COLUMN = "id"
NAME_COLUMN = "name"
EVENT_COLUMN = "event_id"
VIP_COLUMNS = ("is_vip", "isVip")
TABLE_COLUMNS = ("table_number", "tableNumber")
ADDITIONAL_DATA_COLUMN = "additional_data"

PRESS_LABEL = "press"
