APP_NAME = "Inventory Ledger"

DATA_DIR = "data"
DB_FILE_NAME = "inventory-ledger.db"

TABLE_SCHEMA_VERSION = "schema_version"
SCHEMA_VERSION = "1.2"

DEFAULT_LOW_STOCK_THRESHOLD = 5.0

# qty and money are kept to 2 decimals; comparisons tolerate float drift
QTY_EPSILON = 1e-6
MONEY_PLACES = 2

WALK_IN_LABEL = "Walk-in"

MOVEMENT_KINDS = ("IN", "OUT", "RETURN")
