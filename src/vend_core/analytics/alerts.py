"""Rule-based alerts over reconciliation, delivery failures and margin.

Alerts are observations only; nothing in the report is adjusted.

Rules:
    - QR reconciliation month with WARNING/CRITICAL status -> same severity.
    - failed / total deliveries above the warning rate -> WARNING,
      above the critical rate -> CRITICAL.
    - margin trend below the warning points -> WARNING,
      below the critical points -> CRITICAL.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from decimal import Decimal
from typing import TYPE_CHECKING, List, Optional, Sequence

from vend_core.money import round_percent, safe_div
from vend_core.types import AlertKind, ReconciliationStatus, Severity

if TYPE_CHECKING:
    from vend_core.analytics.trends import Trends
    from vend_core.config import ReportConfig
    from vend_core.reconciliation import ReconciliationRow

logger = logging.getLogger(__name__)

_STATUS_SEVERITY = {
    ReconciliationStatus.WARNING: Severity.WARNING,
    ReconciliationStatus.CRITICAL: Severity.CRITICAL,
}


@dataclass
class Alert:
    """One alert.

    Attributes:
        kind: What the alert is about.
        severity: warning or critical.
        message: Human-readable description.
        data: Figures that triggered the alert.
    """

    kind: AlertKind
    severity: Severity
    message: str
    data: dict = field(default_factory=dict)

    def to_dict(self) -> dict:
        return {
            "kind": self.kind.value,
            "severity": self.severity.value,
            "message": self.message,
            "data": self.data,
        }


def reconciliation_alerts(rows: Sequence[ReconciliationRow]) -> List[Alert]:
    alerts = []
    for row in rows:
        severity = _STATUS_SEVERITY.get(row.status)
        if severity is None:
            continue
        alerts.append(
            Alert(
                kind=AlertKind.QR_DISCREPANCY,
                severity=severity,
                message=f"QR discrepancy in {row.month}: {row.difference_percent}%",
                data={
                    "month": row.month,
                    "difference": row.difference,
                    "difference_percent": row.difference_percent,
                    "estimated": row.estimated,
                },
            )
        )
    return alerts


def failure_rate_alert(failed: int, total: int, config: ReportConfig) -> Optional[Alert]:
    rate = safe_div(failed, total)
    if rate > config.failure_critical_rate:
        severity = Severity.CRITICAL
    elif rate > config.failure_warning_rate:
        severity = Severity.WARNING
    else:
        return None
    rate_percent = round_percent(rate * 100)
    return Alert(
        kind=AlertKind.HIGH_FAILURE_RATE,
        severity=severity,
        message=f"High delivery failure rate: {rate_percent}%",
        data={"failure_rate_percent": rate_percent, "failed": failed, "total": total},
    )


def margin_alert(margin_trend: Decimal, config: ReportConfig) -> Optional[Alert]:
    if margin_trend < config.margin_critical_points:
        severity = Severity.CRITICAL
    elif margin_trend < config.margin_warning_points:
        severity = Severity.WARNING
    else:
        return None
    return Alert(
        kind=AlertKind.MARGIN_DECLINE,
        severity=severity,
        message=f"Margin declined by {abs(margin_trend)} points",
        data={"margin_trend": margin_trend},
    )


def evaluate_alerts(
    reconciliation: Sequence[ReconciliationRow],
    orders: dict,
    trends: Trends,
    config: ReportConfig,
) -> List[Alert]:
    """Evaluate all alert rules.

    Args:
        reconciliation: QR reconciliation rows.
        orders: Structure B ``summary["orders"]`` (total, failed).
        trends: Trend deltas.
        config: ReportConfig with alert thresholds.

    Returns:
        Alerts: reconciliation ones in month order, then failure rate, then margin.

    """
    alerts = reconciliation_alerts(reconciliation)
    for alert in (
        failure_rate_alert(orders["failed"], orders["total"], config),
        margin_alert(trends.margin_trend, config),
    ):
        if alert is not None:
            alerts.append(alert)

    for alert in alerts:
        logger.info("Alert [%s] %s", alert.severity.value, alert.message)
    return alerts
