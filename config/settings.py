"""
Central configuration for repository paths and safety limits.

This module defines:
- Repository-relative data directory used for persisted export settings.
- Upload limits for invoices and nomenclature files.
- LLM-related limits (nomenclature text size, retry count, parallel calls).
- Default LLM model settings.

All values are constants and should be imported where needed (no runtime logic here),
except the model name which may be overridden with INVOICE_MODEL. A local .env file
(found from the working directory upwards) is loaded here, before any value is read,
so it also supplies OPENAI_API_KEY to the client. Process environment wins over .env.
"""

from __future__ import annotations

import os
from pathlib import Path

from dotenv import find_dotenv, load_dotenv

load_dotenv(find_dotenv(usecwd=True))


PROJECT_ROOT = Path(__file__).resolve().parents[1]

DATA_DIR = PROJECT_ROOT / "data"
EXPORT_CONFIG_PATH = DATA_DIR / "export_config.json"

MAX_FILE_SIZE_MB = 20

SUPPORTED_INVOICE_TYPES = ("png", "jpg", "jpeg", "webp", "pdf")
SUPPORTED_NOMENCLATURE_TYPES = ("csv", "xlsx", "xlsm", "xls")

MAX_NOMENCLATURE_CHARS = 200_000
JSON_RETRY_ATTEMPTS = 2
MAX_PARALLEL_EXTRACTIONS = 4

DEFAULT_MODEL = os.getenv("INVOICE_MODEL", "gpt-4o-mini")
DEFAULT_TEMPERATURE = 0

# Per-request timeout (seconds) and SDK-level retries for the extraction service.
REQUEST_TIMEOUT_S = 120.0
REQUEST_MAX_RETRIES = 2
