"""Logging helpers for consistent console output."""
import logging

_CONFIGURED = False


def setup_logging(level: str = "INFO") -> None:
    """Configure root logging for the app. Safe to call more than once."""
    global _CONFIGURED
    if _CONFIGURED:
        logging.getLogger().setLevel(level.upper())
        return
    logging.basicConfig(
        level=level.upper(),
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        handlers=[logging.StreamHandler()],
    )
    # httpx logs every OpenAI request at INFO
    logging.getLogger("httpx").setLevel(logging.WARNING)
    _CONFIGURED = True
