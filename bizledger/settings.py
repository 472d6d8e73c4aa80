import os
from pathlib import Path
from dotenv import load_dotenv

# --- Base Directory ---
BASE_DIR = Path(__file__).resolve().parent.parent

# --- Load Environment Variables ---
load_dotenv(BASE_DIR / ".env")

# --- Path Configuration ---
# DATA_DIR holds the persisted collections, OUTPUT_DIR the CSV/JSON exports.
DATA_DIR = BASE_DIR / os.getenv("DATA_DIR", "data")
OUTPUT_DIR = BASE_DIR / os.getenv("OUTPUT_DIR", "output")

# --- Logging ---
LOG_DIR = BASE_DIR / os.getenv("LOG_DIR", "logs")
LOG_FILE = os.getenv("LOG_FILE", "app.log")
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()

# --- Storage Keys ---
PRODUCTS_KEY = os.getenv("PRODUCTS_KEY", "ibd_products")
TRANSACTIONS_KEY = os.getenv("TRANSACTIONS_KEY", "ibd_transactions")

# Envelope version written with every persisted collection.
SCHEMA_VERSION = 1

# --- Ledger ---
# Simulated round trip before a commit touches the store. 0 disables it.
COMMIT_LATENCY_MS = int(os.getenv("COMMIT_LATENCY_MS", "300"))

# --- Output Toggles ---
SAVE_JSON_OUTPUT = os.getenv("SAVE_JSON_OUTPUT", "false").lower() in ("1", "true", "yes")

# --- Audit Advisor ---
ADVISOR_BACKEND = os.getenv("ADVISOR_BACKEND", "gemini").lower()
ADVISOR_TIMEOUT = float(os.getenv("ADVISOR_TIMEOUT", "30"))
AUDIT_RECENT_LIMIT = int(os.getenv("AUDIT_RECENT_LIMIT", "30"))

GEMINI_API_KEY = os.getenv("GEMINI_API_KEY") or os.getenv("API_KEY")
GEMINI_MODEL = os.getenv("GEMINI_MODEL", "gemini-2.5-flash")
GEMINI_ENDPOINT = os.getenv(
    "GEMINI_ENDPOINT",
    "https://generativelanguage.googleapis.com/v1beta/models/{model}:generateContent",
)

# --- Heuristic Audit Thresholds ---
# A purchase is flagged as overstocking when stock already exceeds this multiple of the reorder point.
OVERSTOCK_FACTOR = float(os.getenv("OVERSTOCK_FACTOR", "3"))
# Relative deviation of a purchase price from the catalog cost that counts as abnormal.
PRICE_DEVIATION_RATIO = float(os.getenv("PRICE_DEVIATION_RATIO", "0.25"))
# Share of all credit sales owed by a single customer that counts as a concentration risk.
CREDIT_CONCENTRATION_RATIO = float(os.getenv("CREDIT_CONCENTRATION_RATIO", "0.5"))
# Same counterparty, same type, this many transactions within the window -> possible split.
SPLIT_TRANSACTION_COUNT = int(os.getenv("SPLIT_TRANSACTION_COUNT", "3"))
SPLIT_WINDOW_MINUTES = int(os.getenv("SPLIT_WINDOW_MINUTES", "10"))

# --- Shared Business Data ---
# Catalog written to the store the first time products are read.
SEED_PRODUCTS = [
    {
        "id": "1",
        "name": "Kopi Arabika Premium",
        "sku": "COF-001",
        "price": 75000,
        "cost": 45000,
        "stock": 50,
        "minStockLevel": 10,
        "unit": "kg",
    },
    {
        "id": "2",
        "name": "Gula Aren Organik",
        "sku": "SGR-002",
        "price": 25000,
        "cost": 15000,
        "stock": 100,
        "minStockLevel": 20,
        "unit": "pack",
    },
    {
        "id": "3",
        "name": "Paper Cup 12oz",
        "sku": "PC-003",
        "price": 1000,
        "cost": 500,
        "stock": 500,
        "minStockLevel": 100,
        "unit": "pcs",
    },
    {
        "id": "4",
        "name": "Susu UHT Full Cream",
        "sku": "MLK-004",
        "price": 18000,
        "cost": 14000,
        "stock": 5,
        "minStockLevel": 12,
        "unit": "liter",
    },
]

# Reference number prefixes per transaction type.
REFERENCE_PREFIXES = {
    "SALE": "INV",
    "PURCHASE": "PO",
}
