"""
constants.py
- Project-wide constants shared across the ledger, rebalancer and CLI.
"""

# --- Temporary Copy ---
TMP_EXTENSION = ".balance"  # suffix of the in-flight copy next to the original

# --- Ledger ---
DEFAULT_LEDGER_FILE = "rebalance_db.txt"  # resolved against the working directory

# --- CLI Defaults ---
DEFAULT_PASSES = 1
DEFAULT_CHECKSUM = True
TRUTHY_VALUES = {"1", "on", "true", "yes"}

# --- Fingerprinting ---
HASH_CHUNK_SIZE = 1024 * 1024  # bytes read per digest update
