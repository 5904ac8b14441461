"""
Quality scoring — completeness / intent score + tier assignment.

The score is the sum of the weights of every signal the lead shows, clamped
to [0, 1]. Signals are evaluated in the order of QUALITY_SIGNALS and each
contributing signal appends exactly one reason, so `reasons` lines up 1:1
with the weights that were added. Weights and tier thresholds come from
QualityConfig (scoring_config.yaml).
"""
import logging
import re
from dataclasses import dataclass
from typing import Callable, List

from leadflow.pipeline.base import CandidateLead, QualityResult
from leadflow.pipeline.scoring_config import QualityConfig
from leadflow.pipeline.validators import (
    is_valid_email, is_valid_phone, is_sequential_phone, parse_iso_date,
)

logger = logging.getLogger('pipeline.quality')


@dataclass(frozen=True)
class QualitySignal:
    key: str        # weight key in QualityConfig.weights
    reason: str     # str.format()-ed with cfg=QualityConfig
    check: Callable[[CandidateLead, QualityConfig], bool]


def _message(lead):
    return lead.message or ''


def _travel_dates(lead, cfg):
    arrival = parse_iso_date(lead.arrival_date)
    departure = parse_iso_date(lead.departure_date)
    return bool(arrival and departure and departure > arrival)


QUALITY_SIGNALS: List[QualitySignal] = [
    QualitySignal(
        'valid_email', 'Valid email format',
        lambda lead, cfg: is_valid_email(lead.email),
    ),
    QualitySignal(
        'valid_phone', 'Valid phone number',
        lambda lead, cfg: is_valid_phone(lead.phone) and not is_sequential_phone(lead.phone),
    ),
    QualitySignal(
        'detailed_message', 'Detailed message (>{cfg.detailed_message_chars} chars)',
        lambda lead, cfg: len(_message(lead)) > cfg.detailed_message_chars,
    ),
    QualitySignal(
        'adequate_message', 'Adequate message length',
        lambda lead, cfg: cfg.adequate_message_chars < len(_message(lead)) <= cfg.detailed_message_chars,
    ),
    QualitySignal(
        'booking_keywords', 'Contains booking-related keywords',
        lambda lead, cfg: any(k in _message(lead).lower() for k in cfg.booking_keywords),
    ),
    QualitySignal(
        'specific_details', 'Contains specific details (numbers/dates)',
        lambda lead, cfg: bool(re.search(r'\d', _message(lead))),
    ),
    QualitySignal(
        'question', 'Contains questions (engaged inquiry)',
        lambda lead, cfg: '?' in _message(lead),
    ),
    QualitySignal(
        'complete_contact', 'Complete contact information',
        lambda lead, cfg: bool(lead.email and lead.phone),
    ),
    QualitySignal(
        'travel_dates', 'Travel dates provided (departure after arrival)',
        _travel_dates,
    ),
    QualitySignal(
        'party_size', 'Party size specified',
        lambda lead, cfg: (lead.adults or 0) > 0 or (lead.children or 0) > 0,
    ),
    QualitySignal(
        'budget', 'Budget specified',
        lambda lead, cfg: (lead.lead_value or 0) > 0,
    ),
]


def tier_for(score: float, cfg: QualityConfig) -> str:
    """Monotonic score → tier mapping."""
    if score >= cfg.high_threshold:
        return 'high'
    if score >= cfg.medium_threshold:
        return 'medium'
    return 'low'


class QualityScorer:
    """Scores a CandidateLead. Never raises on missing or partial data."""

    def __init__(self, config: QualityConfig, signals: List[QualitySignal] = None):
        self.config = config
        self.signals = signals or QUALITY_SIGNALS

    def score(self, lead: CandidateLead) -> QualityResult:
        total = 0.0
        reasons = []
        for signal in self.signals:
            weight = self.config.weights.get(signal.key, 0.0)
            if weight <= 0:
                continue
            if signal.check(lead, self.config):
                total += weight
                reasons.append(signal.reason.format(cfg=self.config))

        # Rounded so float sums like 0.7499999 land on the intended tier
        score = round(min(max(total, 0.0), 1.0), 4)
        logger.debug("Quality %.2f from %d signals", score, len(reasons))
        return QualityResult(score=score, tier=tier_for(score, self.config), reasons=reasons)
