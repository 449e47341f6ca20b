"""Threshold-driven dashboard alerts from a declarative rule table.

Rules live in ``resources/alert_rules.yaml`` and are evaluated in file
order. The engine is stateless: dismissals are applied afterwards by the
caller through ``visible_alerts`` and never influence generation.
"""

from __future__ import annotations

import logging
import operator
from collections.abc import Callable, Iterable, Mapping, Sequence
from dataclasses import dataclass
from functools import lru_cache
from pathlib import Path
from typing import Any

import yaml

from mom.core.errors import ValidationError
from mom.domains.meetings.domain_logic.models import Alert, Metrics

logger = logging.getLogger(__name__)

DEFAULT_RULES_PATH = Path(__file__).resolve().parent.parent / "resources" / "alert_rules.yaml"

_OPERATORS: dict[str, Callable[[Any, Any], bool]] = {
    "lt": operator.lt,
    "le": operator.le,
    "eq": operator.eq,
    "ne": operator.ne,
    "ge": operator.ge,
    "gt": operator.gt,
}
_KINDS = ("info", "warning", "error", "success")
_SOURCES = ("overview", "metrics")


@dataclass(frozen=True)
class AlertRule:
    """One ``(predicate, template)`` row of the rule table."""

    id: str
    kind: str
    title: str
    message: str
    source: str
    field: str
    op: str
    value: float

    def matches(self, overview: Mapping[str, Any], metrics: Metrics) -> bool:
        if self.source == "metrics":
            actual = getattr(metrics, self.field, None)
        else:
            actual = overview.get(self.field)
        if actual is None:
            # a missing field never fires
            logger.debug("Alert rule %s skipped: no %s.%s", self.id, self.source, self.field)
            return False
        return _OPERATORS[self.op](actual, self.value)

    def render(self, overview: Mapping[str, Any], metrics: Metrics) -> Alert:
        context = {k: _format_number(v) for k, v in overview.items()}
        context.update({k: _format_number(v) for k, v in metrics.to_dict().items()})
        try:
            message = self.message.format(**context)
        except (KeyError, IndexError, ValueError):
            logger.warning("Alert rule %s has an unknown placeholder", self.id)
            message = self.message
        return Alert(rule_id=self.id, kind=self.kind, title=self.title, message=message)


def load_alert_rules(path: str | Path = DEFAULT_RULES_PATH) -> list[AlertRule]:
    """Parse a YAML rule file into an ordered rule list."""
    with open(path) as f:
        data: dict[str, Any] = yaml.safe_load(f) or {}

    rules = [_parse_rule(raw) for raw in data.get("rules", [])]
    ids = [r.id for r in rules]
    if len(ids) != len(set(ids)):
        raise ValidationError(f"Duplicate alert rule id in {path}")
    logger.debug("Loaded %d alert rule(s) from %s", len(rules), path)
    return rules


@lru_cache(maxsize=1)
def default_rules() -> tuple[AlertRule, ...]:
    return tuple(load_alert_rules())


def compute_alerts(
    data: Mapping[str, Any],
    metrics: Metrics,
    rules: Sequence[AlertRule] | None = None,
) -> list[Alert]:
    """Alerts for the current dashboard data, in rule order.

    Args:
        data: Dashboard data; its ``overview`` mapping feeds overview rules.
        metrics: Output of ``compute_metrics``.
        rules: Rule table; defaults to the bundled YAML rules.
    """
    overview = data.get("overview") or {}
    table = default_rules() if rules is None else rules
    return [rule.render(overview, metrics) for rule in table if rule.matches(overview, metrics)]


def visible_alerts(alerts: Iterable[Alert], dismissed_ids: Iterable[str]) -> list[Alert]:
    """Drop alerts whose rule id was dismissed."""
    dismissed = set(dismissed_ids)
    return [a for a in alerts if a.rule_id not in dismissed]


def _parse_rule(raw: Mapping[str, Any]) -> AlertRule:
    try:
        when = raw["when"]
        rule = AlertRule(
            id=str(raw["id"]),
            kind=str(raw["kind"]),
            title=str(raw["title"]),
            message=str(raw.get("message", "")).strip(),
            source=str(when["source"]),
            field=str(when["field"]),
            op=str(when["op"]),
            value=float(when["value"]),
        )
    except (KeyError, TypeError, ValueError) as exc:
        raise ValidationError(f"Invalid alert rule {raw!r}: {exc}") from exc

    if rule.kind not in _KINDS:
        raise ValidationError(f"Alert rule {rule.id}: unknown kind {rule.kind!r}")
    if rule.source not in _SOURCES:
        raise ValidationError(f"Alert rule {rule.id}: unknown source {rule.source!r}")
    if rule.op not in _OPERATORS:
        raise ValidationError(f"Alert rule {rule.id}: unknown op {rule.op!r}")
    return rule


def _format_number(value: Any) -> Any:
    if isinstance(value, float) and value.is_integer():
        return int(value)
    return value
