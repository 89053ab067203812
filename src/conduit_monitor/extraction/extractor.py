"""Metric extractor: one batch of raw log lines -> one MetricSnapshot."""

from __future__ import annotations

import logging
from typing import Iterable, Optional, Sequence, Union

from conduit_monitor.extraction.models import MetricSnapshot
from conduit_monitor.extraction.rules import (
    DEFAULT_BENIGN_MARKERS,
    DEFAULT_BROKER_MARKER,
    Aggregation,
    FieldRule,
    build_rules,
    marker_pattern,
)

logger = logging.getLogger(__name__)

RawLine = Union[str, bytes]


class MetricExtractor:
    """Evaluates the rule table over a batch in a single pass.

    Never raises on content: unmatched fields keep their defaults and
    occurrences whose captured text cannot be parsed are ignored.
    """

    def __init__(
        self,
        benign_markers: Iterable[str] = DEFAULT_BENIGN_MARKERS,
        broker_marker: str = DEFAULT_BROKER_MARKER,
        rules: Optional[Sequence[FieldRule]] = None,
    ) -> None:
        self._benign = marker_pattern(benign_markers)
        self._rules = list(rules) if rules is not None else build_rules(broker_marker)

    def is_benign(self, line: str) -> bool:
        return self._benign is not None and self._benign.search(line) is not None

    def extract(self, lines: Iterable[RawLine]) -> MetricSnapshot:
        values: dict[str, object] = {}
        counts: dict[str, int] = {}
        benign_count = 0

        for raw in lines:
            line = _decode(raw)
            if not line:
                continue
            benign = self.is_benign(line)
            if benign:
                benign_count += 1
            for rule in self._rules:
                if rule.exclude_benign and benign:
                    continue
                self._apply(rule, line, values, counts)

        snapshot = MetricSnapshot(benign_count=benign_count)
        for name, count in counts.items():
            setattr(snapshot, name, count)
        for name, value in values.items():
            setattr(snapshot, name, value)
        snapshot.observed = frozenset(
            r.field for r in self._rules
            if r.aggregation is Aggregation.LAST and r.field in values
        )
        return snapshot

    @staticmethod
    def _apply(
        rule: FieldRule,
        line: str,
        values: dict[str, object],
        counts: dict[str, int],
    ) -> None:
        m = rule.pattern.search(line)
        if m is None:
            return

        if rule.aggregation is Aggregation.COUNT:
            counts[rule.field] = counts.get(rule.field, 0) + 1
            return
        if rule.aggregation is Aggregation.ANY:
            values[rule.field] = True
            return

        try:
            value = rule.parse(m.group(1)) if rule.parse else m.group(0)
        except (ValueError, IndexError, OverflowError):
            logger.debug("Unparsable %s in line: %r", rule.field, line[:120])
            return

        if rule.aggregation is Aggregation.LAST:
            values[rule.field] = value
        elif rule.aggregation is Aggregation.MAX:
            current = values.get(rule.field)
            if current is None or value > current:
                values[rule.field] = value


def _decode(raw: RawLine) -> str:
    if isinstance(raw, bytes):
        return raw.decode("utf-8", errors="replace")
    if isinstance(raw, str):
        return raw
    return ""
