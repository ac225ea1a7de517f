from pathlib import Path
import logging
import sqlite3
import sys

_log = logging.getLogger(__name__)

SQL = r"""
PRAGMA foreign_keys = ON;

/* ======================== CORE TABLES ======================== */

/* -------- products -------- */
CREATE TABLE IF NOT EXISTS products (
    product_id          INTEGER PRIMARY KEY AUTOINCREMENT,
    name                TEXT NOT NULL UNIQUE,
    sku                 TEXT,
    unit_price          NUMERIC NOT NULL DEFAULT 0 CHECK (CAST(unit_price AS REAL) >= 0),
    qty                 NUMERIC NOT NULL DEFAULT 0 CHECK (CAST(qty AS REAL) >= 0),
    low_stock_threshold NUMERIC NOT NULL DEFAULT 5,
    note                TEXT,
    created_at          TEXT NOT NULL DEFAULT (strftime('%Y-%m-%dT%H:%M:%fZ', 'now'))
);

/* -------- customers -------- */
CREATE TABLE IF NOT EXISTS customers (
    customer_id INTEGER PRIMARY KEY AUTOINCREMENT,
    name        TEXT NOT NULL,
    phone       TEXT NOT NULL,
    note        TEXT,
    created_at  TEXT NOT NULL DEFAULT (strftime('%Y-%m-%dT%H:%M:%fZ', 'now'))
);
CREATE INDEX IF NOT EXISTS idx_customers_name  ON customers(name);
CREATE INDEX IF NOT EXISTS idx_customers_phone ON customers(phone);

/* -------- sales (returns are rows with is_return = 1) -------- */
CREATE TABLE IF NOT EXISTS sales (
    sale_id         INTEGER PRIMARY KEY AUTOINCREMENT,
    ts              TEXT NOT NULL,
    product_id      INTEGER NOT NULL,
    product_name    TEXT NOT NULL,
    qty             NUMERIC NOT NULL CHECK (CAST(qty AS REAL) > 0),
    unit_price      NUMERIC NOT NULL CHECK (CAST(unit_price AS REAL) >= 0),
    total_amount    NUMERIC NOT NULL CHECK (CAST(total_amount AS REAL) >= 0),
    customer_id     INTEGER,
    customer_name   TEXT,
    customer_phone  TEXT,
    note            TEXT,
    is_credit       INTEGER NOT NULL DEFAULT 0 CHECK (is_credit IN (0,1)),
    is_return       INTEGER NOT NULL DEFAULT 0 CHECK (is_return IN (0,1)),
    origin_sale_id  INTEGER,
    override_amount NUMERIC,
    FOREIGN KEY (product_id)     REFERENCES products(product_id)   ON DELETE RESTRICT,
    FOREIGN KEY (customer_id)    REFERENCES customers(customer_id) ON DELETE SET NULL,
    FOREIGN KEY (origin_sale_id) REFERENCES sales(sale_id)         ON DELETE SET NULL
);
CREATE INDEX IF NOT EXISTS idx_sales_ts     ON sales(ts);
CREATE INDEX IF NOT EXISTS idx_sales_pair   ON sales(product_id, customer_id);
CREATE INDEX IF NOT EXISTS idx_sales_origin ON sales(origin_sale_id);

/* -------- stock movements -------- */
CREATE TABLE IF NOT EXISTS stock_movements (
    movement_id   INTEGER PRIMARY KEY AUTOINCREMENT,
    ts            TEXT NOT NULL,
    kind          TEXT NOT NULL CHECK (kind IN ('IN','OUT','RETURN')),
    product_id    INTEGER NOT NULL,
    product_name  TEXT NOT NULL,
    qty           NUMERIC NOT NULL CHECK (CAST(qty AS REAL) > 0),
    unit_price    NUMERIC,
    total_amount  NUMERIC,
    counterparty  TEXT,
    customer_id   INTEGER,
    customer_name TEXT,
    note          TEXT,
    sale_id       INTEGER,
    FOREIGN KEY (product_id)  REFERENCES products(product_id)   ON DELETE RESTRICT,
    FOREIGN KEY (customer_id) REFERENCES customers(customer_id) ON DELETE SET NULL,
    FOREIGN KEY (sale_id)     REFERENCES sales(sale_id)         ON DELETE CASCADE
);
CREATE INDEX IF NOT EXISTS idx_movements_ts      ON stock_movements(ts);
CREATE INDEX IF NOT EXISTS idx_movements_product ON stock_movements(product_id);
/* at most one generated movement per sale/return */
CREATE UNIQUE INDEX IF NOT EXISTS idx_movements_one_per_sale
ON stock_movements(sale_id) WHERE sale_id IS NOT NULL;

/* -------- customer credit log --------
   Charges (is_payment = 0) raise debt; payments and return settlements
   (is_payment = 1) lower it. sale_id is a plain reference: settlement rows
   outlive the return they settled. */
CREATE TABLE IF NOT EXISTS credit_entries (
    entry_id       INTEGER PRIMARY KEY AUTOINCREMENT,
    ts             TEXT NOT NULL,
    customer_id    INTEGER NOT NULL,
    customer_name  TEXT NOT NULL,
    customer_phone TEXT,
    sale_id        INTEGER,
    amount         NUMERIC NOT NULL CHECK (CAST(amount AS REAL) > 0),
    is_payment     INTEGER NOT NULL DEFAULT 0 CHECK (is_payment IN (0,1)),
    note           TEXT,
    source_type    TEXT NOT NULL CHECK (source_type IN (
                        'credit_sale','payment','payment_adjustment','payment_reversal',
                        'return_settlement','return_adjustment','return_reversal')),
    ref_entry_id   INTEGER,
    FOREIGN KEY (customer_id) REFERENCES customers(customer_id) ON DELETE CASCADE
);
CREATE INDEX IF NOT EXISTS idx_credit_customer    ON credit_entries(customer_id);
CREATE INDEX IF NOT EXISTS idx_credit_customer_ts ON credit_entries(customer_id, ts);
CREATE INDEX IF NOT EXISTS idx_credit_sale        ON credit_entries(sale_id);
"""


def _ensure_column(conn: sqlite3.Connection, table: str, column: str, ddl: str) -> None:
    """
    Safe migration for older DBs created before `column` existed.
    Adds the column if missing. No-op if already present.
    """
    cols = {row[1] for row in conn.execute(f"PRAGMA table_info({table});").fetchall()}
    if column not in cols:
        conn.execute(f"ALTER TABLE {table} ADD COLUMN {column} {ddl};")
        _log.info("schema: added %s.%s", table, column)


def apply_schema(conn: sqlite3.Connection) -> None:
    """Apply the idempotent DDL plus column backfills on an open connection."""
    conn.executescript(SQL)
    # soft delete for products keeps their history intact
    _ensure_column(
        conn, "products", "archived",
        "INTEGER NOT NULL DEFAULT 0 CHECK (archived IN (0,1))",
    )
    # detached rows keep their frozen customer snapshot
    _ensure_column(
        conn, "sales", "customer_deleted",
        "INTEGER NOT NULL DEFAULT 0 CHECK (customer_deleted IN (0,1))",
    )


def init_schema(db_path: Path | str = "inventory-ledger.db") -> None:
    db_path = Path(db_path)
    db_path.parent.mkdir(parents=True, exist_ok=True)
    conn = sqlite3.connect(db_path)
    try:
        conn.row_factory = sqlite3.Row
        conn.execute("PRAGMA journal_mode=WAL;")
        apply_schema(conn)
        conn.commit()
    finally:
        conn.close()
    _log.info("schema applied to %s", db_path)


if __name__ == "__main__":
    from ..config import DB_PATH
    from ..constants import APP_NAME
    from ..utils.loggers import get_logger

    log = get_logger()
    target = sys.argv[1] if len(sys.argv) > 1 else DB_PATH
    init_schema(target)
    log.info("%s database ready at %s", APP_NAME, target)
