import logging
from typing import Optional


def configure_logging(level: Optional[str] = None) -> None:
    """Configure logging defaults for the application."""
    logging.basicConfig(
        level=(level or "INFO").upper(),
        format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
    )
    # stripe and urllib3 log request bodies at DEBUG
    for noisy in ("stripe", "urllib3"):
        logging.getLogger(noisy).setLevel(max(logging.INFO, logging.getLogger().level))
