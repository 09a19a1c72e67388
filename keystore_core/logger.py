import logging, json, sys, time, os

ROOT_LOGGER = "keystore"


def _configure_root(to_file=None):
    root = logging.getLogger(ROOT_LOGGER)
    if root.handlers:
        return root

    root.setLevel(os.getenv("KEYSTORE_LOG_LEVEL", "INFO").upper())
    formatter = logging.Formatter(
        fmt=json.dumps({
            "ts": "%(asctime)s",
            "level": "%(levelname)s",
            "logger": "%(name)s",
            "thread": "%(threadName)s",
            "msg": "%(message)s"
        }),
        datefmt="%Y-%m-%dT%H:%M:%SZ",
    )
    formatter.converter = time.gmtime  # UTC timestamps

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(formatter)
    root.addHandler(handler)

    to_file = to_file or os.getenv("KEYSTORE_LOG_FILE")
    if to_file:
        os.makedirs(os.path.dirname(to_file) or ".", exist_ok=True)
        file_handler = logging.FileHandler(to_file)
        file_handler.setFormatter(formatter)
        root.addHandler(file_handler)
    return root


def get_logger(name=ROOT_LOGGER, level=None, to_file=None):
    """
    Structured logger for keystore components.

    Names are namespaced under ``keystore`` ("cache" -> "keystore.cache").
    Handlers live on the ``keystore`` logger only; component loggers
    propagate to it. Its level comes from KEYSTORE_LOG_LEVEL (INFO if unset)
    and its optional file sink from KEYSTORE_LOG_FILE or ``to_file``.
    """
    if name != ROOT_LOGGER and not name.startswith(ROOT_LOGGER + "."):
        name = f"{ROOT_LOGGER}.{name}"
    _configure_root(to_file)

    logger = logging.getLogger(name)
    if level is not None:
        logger.setLevel(level.upper() if isinstance(level, str) else level)
    return logger
