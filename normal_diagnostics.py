"""Recoverable, per-point conditions found while estimating or orienting normals.

None of these abort a whole-cloud operation. Each one is logged when it
happens and, if the caller passed a DiagnosticLog, recorded there so it can
be counted or inspected afterwards.
"""

import collections
import dataclasses
import enum
import logging

logger = logging.getLogger(__name__)


class DiagnosticKind(enum.Enum):
    DEGENERATE_NEIGHBORHOOD = "degenerate_neighborhood"
    LOW_CONFIDENCE = "low_confidence"
    SELF_REFERENCE = "self_reference"
    COINCIDENT_POINT = "coincident_point"
    MISSING_NEIGHBOR_ENTRY = "missing_neighbor_entry"


# Low confidence fits are expected on noisy clouds and would flood the log.
_LOG_LEVELS = {
    DiagnosticKind.DEGENERATE_NEIGHBORHOOD: logging.WARNING,
    DiagnosticKind.LOW_CONFIDENCE: logging.DEBUG,
    DiagnosticKind.SELF_REFERENCE: logging.WARNING,
    DiagnosticKind.COINCIDENT_POINT: logging.WARNING,
    DiagnosticKind.MISSING_NEIGHBOR_ENTRY: logging.WARNING,
}


@dataclasses.dataclass(frozen=True)
class Diagnostic:
    kind: DiagnosticKind
    point_id: int
    message: str


class DiagnosticLog:
    """Collects Diagnostic records in the order they were reported."""

    def __init__(self):
        self._records = []

    def add(self, kind, point_id, message):
        """Records a diagnostic and returns it. Logging is done by report()."""
        record = Diagnostic(kind=kind, point_id=int(point_id), message=message)
        self._records.append(record)
        return record

    def of_kind(self, kind):
        return [record for record in self._records if record.kind is kind]

    def point_ids(self, kind):
        return [record.point_id for record in self.of_kind(kind)]

    def count(self, kind):
        return len(self.of_kind(kind))

    def summary(self):
        """Returns a {kind name: count} dictionary of the recorded diagnostics."""
        counts = collections.Counter(record.kind.value for record in self._records)
        return dict(counts)

    def __len__(self):
        return len(self._records)

    def __iter__(self):
        return iter(self._records)

    def __repr__(self):
        return f"DiagnosticLog({self.summary()!r})"


def report(diagnostics, kind, point_id, message):
    """Logs a diagnostic and records it in `diagnostics` when one was given."""
    logger.log(_LOG_LEVELS[kind], "[%s] point %d: %s", kind.value, point_id, message)
    if diagnostics is not None:
        diagnostics.add(kind, point_id, message)
