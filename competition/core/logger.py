import logging
import os
from typing import Optional

ROOT_LOGGER = "competition"


def _level(env_name: str, default: int) -> int:
    name = (os.getenv(env_name) or "").strip().upper()
    return getattr(logging, name, default) if name else default


def _configure():
    level = _level("LOG_LEVEL", logging.INFO)

    handler = logging.StreamHandler()
    handler.setFormatter(logging.Formatter("%(asctime)s [%(levelname)s] %(name)s: %(message)s"))

    root = logging.getLogger()
    root.handlers.clear()
    root.addHandler(handler)
    root.setLevel(level)
    logging.getLogger(ROOT_LOGGER).setLevel(level)

    # Server logs share the root handler.
    for name in ("uvicorn", "uvicorn.error", "uvicorn.access"):
        lg = logging.getLogger(name)
        lg.handlers.clear()
        lg.propagate = True
        lg.setLevel(level)

    # Engine echo stays off unless SQL_LOG_LEVEL asks for it.
    sql_lg = logging.getLogger("sqlalchemy.engine")
    sql_lg.handlers.clear()
    sql_lg.propagate = True
    sql_lg.setLevel(_level("SQL_LOG_LEVEL", logging.WARNING))


_configure()


def get_logger(name: Optional[str] = None) -> logging.Logger:
    """Logger under the `competition` namespace, e.g. get_logger("services.ranking")."""
    if not name:
        return logging.getLogger(ROOT_LOGGER)
    if name == ROOT_LOGGER or name.startswith(ROOT_LOGGER + "."):
        return logging.getLogger(name)
    return logging.getLogger(f"{ROOT_LOGGER}.{name}")


logger = get_logger()
