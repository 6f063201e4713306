# logger.py
import os, glob, logging
from contextvars import ContextVar

_CYCLE_I = ContextVar("cycle_i", default=-1)

LOGGER_NAMES = [
    "main",
    "controller",
    "engine",
    "rule_block",
    "rule",
    "variable",
    "defuzzifier",
    "profiler",
]


def set_cycle_index(i: int) -> None:
    _CYCLE_I.set(int(i))


def get_cycle_index() -> int:
    return _CYCLE_I.get()


class CycleIndexFilter(logging.Filter):
    def filter(self, record):
        record.i = _CYCLE_I.get()
        return True


def setup_logging(
    log_dir: str = "logs",
    overwrite: bool = True,
    log_level: int = logging.DEBUG,
    console_level: int = logging.INFO,
    cleanup_rotated: bool = True,
) -> None:
    """
    One log file per pipeline stage in `log_dir`, plus the console for "main".

    Every record is prefixed with the cycle index set by set_cycle_index().
    """
    os.makedirs(log_dir, exist_ok=True)
    if cleanup_rotated:
        for path in glob.glob(os.path.join(log_dir, "*.log.*")):
            try:
                os.remove(path)
            except OSError as e:
                logging.getLogger("main").debug("Could not remove %s: %s", path, e)

    fmt = logging.Formatter("%(i)06d | %(levelname)s | %(name)s | %(message)s")

    # console for "main"
    console = logging.StreamHandler()
    console.setFormatter(fmt)
    console.setLevel(console_level)
    console.addFilter(CycleIndexFilter())

    for name in LOGGER_NAMES:
        log = logging.getLogger(name)
        log.setLevel(log_level)
        log.propagate = False
        for h in list(log.handlers):
            log.removeHandler(h)
            h.close()

        mode = "w" if overwrite else "a"
        fh = logging.FileHandler(os.path.join(log_dir, f"{name}.log"), mode=mode, encoding="utf-8")
        fh.setFormatter(fmt)
        fh.setLevel(log_level)
        fh.addFilter(CycleIndexFilter())
        log.addHandler(fh)

    # attach console to "main" after filters exist
    logging.getLogger("main").addHandler(console)
    logging.getLogger("main").info("Logging system initialized.")
