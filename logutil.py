import os
import logging
import threading
import multiprocessing
import config

LOGGER_NAME = 'worldgen'

LEVELS = {
    'DEBUG': logging.DEBUG,
    'INFO': logging.INFO,
    'WARN': logging.WARNING,
    'WARNING': logging.WARNING,
    'ERROR': logging.ERROR,
    'SEVERE': logging.CRITICAL,
}

_logger = logging.getLogger(LOGGER_NAME)


def init_logging(level=None):
    """Attach console (and optional file) handlers to the worldgen logger. Safe to call twice."""
    if level is None:
        level = getattr(config, 'LOG_LEVEL', 'INFO')
    _logger.setLevel(LEVELS.get(level, logging.INFO))
    if _logger.handlers:
        return _logger
    console = logging.StreamHandler()
    console.setFormatter(logging.Formatter('%(message)s'))
    _logger.addHandler(console)
    path = getattr(config, 'LOG_FILE_PATH', None)
    if path:
        mode = 'a' if getattr(config, 'LOG_FILE_APPEND', False) else 'w'
        handler = logging.FileHandler(path, mode, encoding='utf-8')
        handler.setFormatter(logging.Formatter('%(asctime)s %(message)s'))
        _logger.addHandler(handler)
    return _logger


def log(scope, msg, level="INFO"):
    if scope == "TIMING" and not getattr(config, "LOG_GENERATION_TIMES", False):
        return
    pid = os.getpid()
    proc = multiprocessing.current_process().name
    thread = threading.current_thread().name
    text = f"[{level} pid{pid} proc{proc} thr{thread} {scope}] {msg}"
    use_color = getattr(config, "LOG_COLOR", True) and os.getenv("NO_COLOR") is None
    if use_color:
        if proc == "MainProcess" and thread != "MainThread":
            # Generator worker thread.
            text = f"\x1b[32m{text}\x1b[0m"
        elif proc != "MainProcess":
            text = f"\x1b[33m{text}\x1b[0m"
    _logger.log(LEVELS.get(level, logging.INFO), text)
