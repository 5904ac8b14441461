"""
Scoring configuration — YAML with hardcoded fallback.

All weights and thresholds used by the quality scorer, the spam scorer and the
daily exception analyzer live here, so operators can tune them by editing
scoring_config.yaml (or pointing SCORING_CONFIG_PATH elsewhere) without
touching extraction or scoring logic.
"""
import copy
import logging
import os
from dataclasses import dataclass, field
from typing import Any, Dict, List

import yaml

from leadflow.config import SCORING_CONFIG_PATH

logger = logging.getLogger('pipeline.scoring_config')

_scoring_config = None


def _default_config():
    """Hardcoded fallback if YAML is missing."""
    return {
        'version': 'default',
        'quality': {
            'tiers': {'high': 0.75, 'medium': 0.40},
            'weights': {
                'valid_email': 0.15,
                'valid_phone': 0.15,
                'detailed_message': 0.15,
                'adequate_message': 0.10,
                'booking_keywords': 0.10,
                'specific_details': 0.05,
                'question': 0.05,
                'complete_contact': 0.10,
                'travel_dates': 0.10,
                'party_size': 0.05,
                'budget': 0.05,
            },
            'detailed_message_chars': 100,
            'adequate_message_chars': 50,
            'booking_keywords': [
                'book', 'reservation', 'stay', 'room', 'night', 'guest',
                'check-in', 'checkout', 'availability', 'dates', 'price', 'quote',
            ],
        },
        'spam': {
            'threshold': 0.60,
            'weights': {
                'invalid_email': 0.30,
                'invalid_phone': 0.20,
                'sequential_phone': 0.30,
                'missing_contact': 0.20,
                'multiple_urls': 0.40,
                'non_alpha_message': 0.30,
                'no_spaces': 0.20,
                'all_caps': 0.20,
                'excessive_punctuation': 0.10,
                'random_email': 0.20,
                'single_char_name': 0.20,
                'repeat_submitter': 0.40,
            },
            'repeat_window_minutes': 10,
            'repeat_max_submissions': 3,
        },
        'exceptions': {
            'spam_rate': 0.20,
            'duplicate_count': 5,
            'low_quality_rate': 0.50,
            'spike_multiplier': 2.0,
            'spike_min_daily_average': 5.0,
            'no_high_quality_min_total': 10,
            'baseline_days': 7,
        },
    }


def load_scoring_config():
    """Load scoring config from YAML, with in-memory cache and hardcoded fallback."""
    global _scoring_config
    if _scoring_config is not None:
        return _scoring_config

    config_path = SCORING_CONFIG_PATH or os.path.join(os.path.dirname(__file__), 'scoring_config.yaml')
    try:
        with open(config_path, 'r') as f:
            loaded = yaml.safe_load(f)
        if not isinstance(loaded, dict):
            raise yaml.YAMLError(f'expected a mapping, got {type(loaded).__name__}')
        _scoring_config = loaded
        logger.info("Config loaded from YAML (version=%s)", _scoring_config.get('version', '?'))
    except (OSError, yaml.YAMLError) as e:
        logger.warning("YAML config not found (%s), using defaults", e)
        _scoring_config = _default_config()

    return _scoring_config


# ── Typed views handed to each scorer ────────────────────────────────────────

def _merged(section: str, raw: Dict[str, Any]) -> Dict[str, Any]:
    """Overlay a (possibly partial) YAML section on the defaults."""
    merged = copy.deepcopy(_default_config()[section])
    for key, value in (raw.get(section) or {}).items():
        if isinstance(value, dict) and isinstance(merged.get(key), dict):
            merged[key].update(value)
        else:
            merged[key] = value
    return merged


@dataclass
class QualityConfig:
    weights: Dict[str, float]
    high_threshold: float = 0.75
    medium_threshold: float = 0.40
    detailed_message_chars: int = 100
    adequate_message_chars: int = 50
    booking_keywords: List[str] = field(default_factory=list)


@dataclass
class SpamConfig:
    weights: Dict[str, float]
    threshold: float = 0.60
    repeat_window_minutes: int = 10
    repeat_max_submissions: int = 3


@dataclass
class ExceptionConfig:
    spam_rate: float = 0.20
    duplicate_count: int = 5
    low_quality_rate: float = 0.50
    spike_multiplier: float = 2.0
    spike_min_daily_average: float = 5.0
    no_high_quality_min_total: int = 10
    baseline_days: int = 7


@dataclass
class ScoringConfig:
    quality: QualityConfig
    spam: SpamConfig
    exceptions: ExceptionConfig
    version: str = 'default'

    @classmethod
    def from_dict(cls, raw: Dict[str, Any]) -> 'ScoringConfig':
        q = _merged('quality', raw)
        s = _merged('spam', raw)
        e = _merged('exceptions', raw)
        return cls(
            quality=QualityConfig(
                weights={k: float(v) for k, v in q['weights'].items()},
                high_threshold=float(q['tiers']['high']),
                medium_threshold=float(q['tiers']['medium']),
                detailed_message_chars=int(q['detailed_message_chars']),
                adequate_message_chars=int(q['adequate_message_chars']),
                booking_keywords=[str(k).lower() for k in q['booking_keywords']],
            ),
            spam=SpamConfig(
                weights={k: float(v) for k, v in s['weights'].items()},
                threshold=float(s['threshold']),
                repeat_window_minutes=int(s['repeat_window_minutes']),
                repeat_max_submissions=int(s['repeat_max_submissions']),
            ),
            exceptions=ExceptionConfig(**{
                k: v for k, v in e.items() if k in ExceptionConfig.__dataclass_fields__
            }),
            version=str(raw.get('version', 'default')),
        )

    @classmethod
    def default(cls) -> 'ScoringConfig':
        return cls.from_dict(_default_config())


def get_scoring_config() -> ScoringConfig:
    """The active ScoringConfig (YAML-backed, cached)."""
    return ScoringConfig.from_dict(load_scoring_config() or {})
