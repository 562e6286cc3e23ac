import hashlib
import logging
from typing import Any

# Create the library logger
logger = logging.getLogger("pagemachine")

# Add NullHandler to prevent "No handlers could be found" warnings
# if the application doesn't configure logging.
logger.addHandler(logging.NullHandler())


def redact_query(query: Any) -> str | None:
    """
    Redacts a query for logging.
    Search queries are user input, so only a short hash is logged; equal
    queries hash equally, which still allows correlating log lines.
    """
    if query is None:
        return None
    try:
        return hashlib.sha256(repr(query).encode("utf-8")).hexdigest()[:8]
    except Exception:
        return "<redaction_failed>"
