import logging

logger = logging.getLogger(__name__)


def run_best_effort(fn, *args, **kwargs) -> None:
    """Run `fn`; failures are logged with a traceback and never re-raised."""
    try:
        fn(*args, **kwargs)
    except Exception:
        logger.exception("Background task %s failed", getattr(fn, "__name__", repr(fn)))


def submit(tasks, fn, *args, **kwargs) -> None:
    """
    Fire-and-forget dispatch.

    `tasks` is a FastAPI BackgroundTasks (runs after the response is sent).
    With `tasks=None` the call runs inline, with the same non-propagating semantics.
    """
    if tasks is None:
        run_best_effort(fn, *args, **kwargs)
    else:
        tasks.add_task(run_best_effort, fn, *args, **kwargs)
