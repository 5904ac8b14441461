"""
Daily exception analysis — roll one tenant-day of leads into operator alerts.

Each rule is evaluated independently, so a day can raise zero, one or
several exceptions. Thresholds come from ExceptionConfig; the defaults
(20% spam, >5 duplicates, 50% low quality, 2x the 7-day average above
5/day, >10 leads with no high tier) are what operators see in reports.
"""
from dataclasses import asdict, dataclass
from typing import Any, Dict, Iterable, List

from leadflow.config import QUALITY_TIERS
from leadflow.pipeline.scoring_config import ExceptionConfig

WARNING = 'warning'
ERROR = 'error'

HIGH_SPAM_RATE = 'High Spam Rate'
DUPLICATE_SUBMISSIONS = 'Duplicate Submissions'
LOW_QUALITY_LEADS = 'Low Quality Leads'
SUBMISSION_SPIKE = 'Submission Spike'
NO_HIGH_QUALITY = 'No High-Quality Leads'


@dataclass
class DailyException:
    type: str
    count: int
    details: str
    severity: str        # 'warning' or 'error'

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass
class DayStats:
    total: int = 0
    high: int = 0
    medium: int = 0
    low: int = 0
    spam: int = 0
    duplicate: int = 0

    @classmethod
    def from_leads(cls, leads: Iterable[Any]) -> 'DayStats':
        stats = cls()
        for lead in leads:
            stats.total += 1
            tier = getattr(lead, 'quality_tier', None)
            if tier in QUALITY_TIERS:
                setattr(stats, tier, getattr(stats, tier) + 1)
            if getattr(lead, 'is_spam', False):
                stats.spam += 1
            if getattr(lead, 'is_duplicate', False):
                stats.duplicate += 1
        return stats

    def to_dict(self) -> Dict[str, int]:
        return asdict(self)


class ExceptionAnalyzer:
    """Pure batch computation: (day's leads, trailing total) → exceptions."""

    def __init__(self, config: ExceptionConfig = None):
        self.config = config or ExceptionConfig()

    def analyze(self, leads: Iterable[Any], trailing_total: int) -> List[DailyException]:
        return self.analyze_stats(DayStats.from_leads(leads), trailing_total)

    def analyze_stats(self, stats: DayStats, trailing_total: int) -> List[DailyException]:
        cfg = self.config
        exceptions = []
        if stats.total == 0:
            return exceptions

        spam_rate = stats.spam / stats.total
        if spam_rate > cfg.spam_rate:
            exceptions.append(DailyException(
                type=HIGH_SPAM_RATE,
                count=stats.spam,
                details=f'{spam_rate * 100:.1f}% of leads were flagged as spam '
                        f'(threshold: {cfg.spam_rate * 100:g}%)',
                severity=ERROR,
            ))

        # is_duplicate is a soft marker nothing in ingestion sets, so this
        # stays quiet unless leads are flagged after the fact
        if stats.duplicate > cfg.duplicate_count:
            exceptions.append(DailyException(
                type=DUPLICATE_SUBMISSIONS,
                count=stats.duplicate,
                details=f'{stats.duplicate} duplicate form submissions detected',
                severity=WARNING,
            ))

        low_rate = stats.low / stats.total
        if low_rate > cfg.low_quality_rate:
            exceptions.append(DailyException(
                type=LOW_QUALITY_LEADS,
                count=stats.low,
                details=f'{low_rate * 100:.1f}% of leads were low quality '
                        f'(threshold: {cfg.low_quality_rate * 100:g}%)',
                severity=WARNING,
            ))

        average = (trailing_total or 0) / cfg.baseline_days
        if stats.total > average * cfg.spike_multiplier and average > cfg.spike_min_daily_average:
            exceptions.append(DailyException(
                type=SUBMISSION_SPIKE,
                count=stats.total,
                details=f'{stats.total} leads received ({cfg.spike_multiplier:g}x the '
                        f'{cfg.baseline_days}-day average of {average:.1f})',
                severity=WARNING,
            ))

        if stats.total > cfg.no_high_quality_min_total and stats.high == 0:
            exceptions.append(DailyException(
                type=NO_HIGH_QUALITY,
                count=0,
                details=f'None of the {stats.total} leads were categorized as high quality',
                severity=ERROR,
            ))

        return exceptions


def summarize(exceptions: List[DailyException]) -> str:
    if exceptions:
        return f'{len(exceptions)} exceptions detected'
    return 'No exceptions - all leads within normal parameters'
