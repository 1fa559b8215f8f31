"""Decides whether a tracked file has been stable long enough to process."""

from maturewatch.schemas.watch import FileSnapshot, Maturity, Observation


def classify(snapshot: FileSnapshot, *, now: float, maturation: float) -> Maturity:
    """Classify a snapshot as mature or immature at time ``now``.

    A file is mature only when the latest scan found its modification time
    unchanged from the previous scan and at least ``maturation`` seconds have
    passed since that modification time. Files seen for the first time, or
    modified since the previous scan, are always immature, even with a
    maturation of zero.
    """
    if snapshot.last_observation != Observation.UNCHANGED:
        return Maturity.IMMATURE
    if snapshot.missed_scans:
        return Maturity.IMMATURE
    age = now - snapshot.last_modified
    return Maturity.MATURE if age >= maturation else Maturity.IMMATURE
