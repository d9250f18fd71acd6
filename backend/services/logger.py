import logging


_CONFIGURED = False


def setup_logging(level: str = "INFO", fmt: str = "%(asctime)s %(levelname)s %(name)s: %(message)s") -> None:
    global _CONFIGURED
    root = logging.getLogger()
    root.setLevel(level.upper())
    if not _CONFIGURED:
        handler = logging.StreamHandler()
        handler.setFormatter(logging.Formatter(fmt))
        root.addHandler(handler)
        _CONFIGURED = True
    # per-request access lines drown out job progress
    logging.getLogger("uvicorn.access").setLevel(logging.WARNING)


def job_logger(name: str, filename: str) -> logging.LoggerAdapter:
    """Logger that prefixes every message with the job it belongs to."""
    return _JobAdapter(logging.getLogger(name), {"filename": filename})


class _JobAdapter(logging.LoggerAdapter):
    def process(self, msg, kwargs):
        return f"[separate:{self.extra['filename']}] {msg}", kwargs
