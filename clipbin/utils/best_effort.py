import logging
from typing import Callable, Optional, TypeVar

T = TypeVar("T")


def best_effort(
    action: Callable[[], T],
    *,
    logger: logging.Logger,
    description: str,
    cleanup: Optional[Callable[[], None]] = None,
) -> Optional[T]:
    """Run a side effect whose failure must not fail the caller.

    Any exception is logged to ``logger`` (with traceback) and swallowed;
    ``cleanup`` (typically ``db.rollback``) then runs so the caller's
    session stays usable. Returns the action's result, or None on failure.
    """
    try:
        return action()
    except Exception:
        logger.exception("best-effort %s failed", description)
        if cleanup is not None:
            try:
                cleanup()
            except Exception:
                logger.exception("cleanup after failed %s also failed", description)
        return None
