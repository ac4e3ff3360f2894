"""
FILE: nexuschain/checkpoints/deriver.py
Pure status / alert derivation over a product's checkpoint history.

Nothing here touches the database: callers hand in checkpoint-like objects
(anything with timestamp, created_at, status, location, temperature) and get
plain values back.
"""

import enum
from dataclasses import dataclass
from datetime import datetime
from typing import Iterable, List, Optional, Sequence, Tuple

REGISTERED_STATUS = "REGISTERED"


class StatusDerivationPolicy(str, enum.Enum):
    """How a product's current status/location follow its checkpoints."""

    # Current fields mirror the checkpoint with the greatest timestamp.
    # Backdated checkpoints are recorded without clobbering newer state.
    LATEST_TIMESTAMP = "latest_timestamp"
    # Every insert overwrites current fields, whatever its timestamp.
    LAST_WRITE_WINS = "last_write_wins"


DEFAULT_STATUS_POLICY = StatusDerivationPolicy.LATEST_TIMESTAMP


class AlertType(str, enum.Enum):
    TOO_COLD = "TOO_COLD"
    TOO_HOT = "TOO_HOT"


@dataclass(frozen=True)
class TemperatureAlert:
    alert_type: AlertType
    threshold: float


@dataclass(frozen=True)
class CurrentState:
    status: str
    location: str


# Temperature

def has_temperature_range(min_temperature: Optional[float], max_temperature: Optional[float]) -> bool:
    return min_temperature is not None or max_temperature is not None


def classify_temperature(
    temperature: Optional[float],
    min_temperature: Optional[float],
    max_temperature: Optional[float],
) -> Optional[TemperatureAlert]:
    """
    Classify a single reading against the product's cold-chain bounds.
    Bounds are exclusive: a reading equal to a bound is compliant.
    A missing reading is never a violation.
    """
    if temperature is None:
        return None
    if min_temperature is not None and temperature < min_temperature:
        return TemperatureAlert(AlertType.TOO_COLD, min_temperature)
    if max_temperature is not None and temperature > max_temperature:
        return TemperatureAlert(AlertType.TOO_HOT, max_temperature)
    return None


def compute_temperature_alerts(
    checkpoints: Iterable,
    min_temperature: Optional[float],
    max_temperature: Optional[float],
) -> List[Tuple[object, TemperatureAlert]]:
    """
    Return (checkpoint, alert) pairs for every out-of-range reading.
    Source order is preserved; nothing is re-sorted by severity.
    """
    if not has_temperature_range(min_temperature, max_temperature):
        return []
    alerts = []
    for checkpoint in checkpoints:
        alert = classify_temperature(checkpoint.temperature, min_temperature, max_temperature)
        if alert:
            alerts.append((checkpoint, alert))
    return alerts


# Ordering

def _chronological_key(checkpoint) -> Tuple[datetime, datetime]:
    return (checkpoint.timestamp, checkpoint.created_at or checkpoint.timestamp)


def _insertion_key(checkpoint) -> datetime:
    return checkpoint.created_at or checkpoint.timestamp


def sort_newest_first(checkpoints: Iterable) -> list:
    """Display order: timestamp desc, ties broken by record creation desc."""
    return sorted(checkpoints, key=_chronological_key, reverse=True)


def select_latest(
    checkpoints: Sequence,
    policy: StatusDerivationPolicy = DEFAULT_STATUS_POLICY,
):
    """The checkpoint whose values the product's current fields should carry."""
    if not checkpoints:
        return None
    if policy is StatusDerivationPolicy.LAST_WRITE_WINS:
        return max(checkpoints, key=_insertion_key)
    return max(checkpoints, key=_chronological_key)


def supersedes(
    candidate,
    current_latest,
    policy: StatusDerivationPolicy = DEFAULT_STATUS_POLICY,
) -> bool:
    """Whether a newly written checkpoint should overwrite the product's current fields."""
    if policy is StatusDerivationPolicy.LAST_WRITE_WINS:
        return True
    if current_latest is None:
        return True
    return candidate.timestamp >= current_latest.timestamp


def derive_current_state(
    origin_location: str,
    checkpoints: Sequence,
    policy: StatusDerivationPolicy = DEFAULT_STATUS_POLICY,
) -> CurrentState:
    """Recompute the denormalized fields from scratch, falling back to origin values."""
    latest = select_latest(checkpoints, policy)
    if latest is None:
        return CurrentState(status=REGISTERED_STATUS, location=origin_location)
    return CurrentState(status=latest.status, location=latest.location)
