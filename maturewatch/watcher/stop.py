"""Stop-condition evaluation for the watch loop."""

from maturewatch.schemas.watch import StopCondition, StopKind

# Discovery scan plus one confirmation scan
ONCE_ITERATIONS = 2


def should_stop(
    condition: StopCondition,
    *,
    dispatched: int,
    elapsed: float,
    iterations: int,
    idle: float,
) -> bool:
    """Return True when the loop should halt after the current cycle.

    Args:
        condition: The configured stop condition.
        dispatched: Number of outcomes recorded so far, succeeded or failed.
        elapsed: Seconds since the watch started.
        iterations: Number of completed cycles, including the current one.
        idle: Seconds since a tracked path last appeared or was modified.
    """
    if condition.kind == StopKind.ONCE:
        return iterations >= ONCE_ITERATIONS
    if condition.kind == StopKind.FILES_FOUND:
        return dispatched >= condition.count
    if condition.kind == StopKind.ELAPSED:
        return elapsed >= condition.seconds
    if condition.kind == StopKind.NO_NEW_FILES_SINCE:
        return idle >= condition.seconds
    return False
