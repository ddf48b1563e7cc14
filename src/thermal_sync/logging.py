import logging

# Third-party loggers that are noisy at INFO on a busy network: zeroconf logs
# every malformed mDNS packet, urllib3 every new connection to a camera.
CHATTY_LOGGERS = ("zeroconf", "urllib3")


def configure_logging(level: str = "INFO") -> None:
    """
    Configure logging for the sync agent.

    Unless running at DEBUG, zeroconf and urllib3 are capped at WARNING so the
    per-cycle lines stay readable in the journal.
    """
    numeric_level = getattr(logging, level.upper(), logging.INFO)

    logging.basicConfig(
        level=numeric_level,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )

    library_level = logging.DEBUG if numeric_level <= logging.DEBUG else max(numeric_level, logging.WARNING)
    for name in CHATTY_LOGGERS:
        logging.getLogger(name).setLevel(library_level)
