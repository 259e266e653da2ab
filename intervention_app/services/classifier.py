"""Classifier

Maps a day's self-reported metrics to the three "low" flags, the decision
whether to intervene at all, and the condition label used to look up
interventions.
"""
import logging
from dataclasses import dataclass
from typing import Optional

from intervention_app.core.config import Settings, get_settings

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Thresholds:
    """A metric strictly below its threshold counts as low."""
    stress: float = 2.0
    sleep_hours: float = 5.0
    steps: int = 3000
    minutes: int = 10

    @classmethod
    def from_settings(cls, settings: Settings) -> "Thresholds":
        return cls(
            stress=settings.STRESS_LOW_THRESHOLD,
            sleep_hours=settings.SLEEP_LOW_THRESHOLD,
            steps=settings.STEPS_LOW_THRESHOLD,
            minutes=settings.MINUTES_LOW_THRESHOLD,
        )


@dataclass(frozen=True)
class MetricsSnapshot:
    """Detached snapshot; `DailyData` rows expose the same attributes."""
    stress_level: Optional[float] = None
    sleep_hours: Optional[float] = None
    activity_steps: Optional[int] = None
    activity_minutes: Optional[int] = None


@dataclass(frozen=True)
class Classification:
    is_low_stress: bool
    is_low_sleep: bool
    is_low_activity: bool


@dataclass(frozen=True)
class Decision:
    classification: Classification
    has_required_data: bool
    should_intervene: bool
    condition: str


# (low stress, low sleep, low activity) -> intervene
INTERVENTION_TABLE = {
    (True, True, True): True,
    (True, True, False): False,
    (True, False, True): True,
    (True, False, False): True,
    (False, True, True): True,
    (False, True, False): True,
    (False, False, True): True,
    (False, False, False): False,
}


class Classifier:
    def __init__(self, thresholds: Optional[Thresholds] = None):
        self.thresholds = thresholds or Thresholds.from_settings(get_settings())

    def is_low_stress(self, snapshot) -> bool:
        return snapshot.stress_level is not None and snapshot.stress_level < self.thresholds.stress

    def is_low_sleep(self, snapshot) -> bool:
        return snapshot.sleep_hours is not None and snapshot.sleep_hours < self.thresholds.sleep_hours

    def is_low_activity(self, snapshot) -> bool:
        low_steps = snapshot.activity_steps is not None and snapshot.activity_steps < self.thresholds.steps
        low_minutes = snapshot.activity_minutes is not None and snapshot.activity_minutes < self.thresholds.minutes
        return low_steps or low_minutes

    def classify(self, snapshot) -> Classification:
        return Classification(
            is_low_stress=self.is_low_stress(snapshot),
            is_low_sleep=self.is_low_sleep(snapshot),
            is_low_activity=self.is_low_activity(snapshot),
        )

    def has_required_data(self, snapshot) -> bool:
        """Stress and sleep must be reported, plus at least one activity metric."""
        return (
            snapshot.stress_level is not None
            and snapshot.sleep_hours is not None
            and (snapshot.activity_steps is not None or snapshot.activity_minutes is not None)
        )

    def should_intervene(self, snapshot) -> bool:
        """Decide whether today's metrics warrant an intervention.

        Any adverse signal triggers one, except low stress with low sleep while
        still active, which is left alone.
        """
        if not self.has_required_data(snapshot):
            return False
        c = self.classify(snapshot)
        return INTERVENTION_TABLE[(c.is_low_stress, c.is_low_sleep, c.is_low_activity)]

    def condition_label(self, snapshot) -> str:
        c = self.classify(snapshot)
        return (
            ("low_stress_" if c.is_low_stress else "high_stress_")
            + ("low_sleep_" if c.is_low_sleep else "high_sleep_")
            + ("low_activity" if c.is_low_activity else "high_activity")
        )

    def evaluate(self, snapshot) -> Decision:
        decision = Decision(
            classification=self.classify(snapshot),
            has_required_data=self.has_required_data(snapshot),
            should_intervene=self.should_intervene(snapshot),
            condition=self.condition_label(snapshot),
        )
        logger.info(
            f"Classified snapshot: condition={decision.condition}, "
            f"complete={decision.has_required_data}, intervene={decision.should_intervene}"
        )
        return decision
