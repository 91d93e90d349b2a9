"""
Shared OpenAI client for invoice extraction.

Credentials come from the environment; a local .env file is loaded by
config.settings. Batch workers share one client, which is safe for concurrent
requests.
"""

from __future__ import annotations

import logging
import os
import threading

from openai import OpenAI

from config.settings import REQUEST_MAX_RETRIES, REQUEST_TIMEOUT_S

logger = logging.getLogger(__name__)

_client: OpenAI | None = None
_lock = threading.Lock()


def has_api_key() -> bool:
    return bool(os.getenv("OPENAI_API_KEY"))


def get_client() -> OpenAI:
    """Create the client on first use and return the same instance afterwards."""
    global _client
    with _lock:
        if _client is None:
            if not has_api_key():
                logger.warning("OPENAI_API_KEY is not set; extraction requests will be rejected")
            _client = OpenAI(timeout=REQUEST_TIMEOUT_S, max_retries=REQUEST_MAX_RETRIES)
        return _client
