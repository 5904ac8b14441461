"""
Pipeline data contracts.

Every ingestion step works on the same small set of typed records: the
`FieldValue` union extracted from a raw payload, the `CandidateLead` that the
extractor builds and the scorers annotate, and the tagged `IngestResult`
returned by the pipeline's top-level call.
"""
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, List, Optional, Union

from leadflow.errors import LeadflowError


# ── Raw payload values ───────────────────────────────────────────────────────

@dataclass(frozen=True)
class FieldValue:
    """
    One form field, normalized.

    Form vendors send either a bare scalar (string/number) or a
    `{value, label}` pair; both collapse to text plus an optional label.
    """
    text: str
    label: str = ''

    @property
    def label_lower(self) -> str:
        return self.label.lower()

    @classmethod
    def from_raw(cls, raw: Any) -> 'FieldValue':
        if isinstance(raw, dict):
            return cls(text=_scalar_text(raw.get('value')), label=str(raw.get('label') or ''))
        return cls(text=_scalar_text(raw))


def _scalar_text(value: Any) -> str:
    """Stringify a scalar the way the form vendor displays it."""
    if value is None:
        return ''
    if isinstance(value, bool):
        return 'true' if value else 'false'
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    if isinstance(value, (dict, list)):
        return ''
    return str(value).strip()


# ── Candidate lead ───────────────────────────────────────────────────────────

@dataclass
class SubmissionMeta:
    """Request metadata carried through extraction unchanged."""
    form_id: str = 'unknown'
    entry_id: str = ''
    form_title: str = 'Contact Form'
    submitted_at: Optional[datetime] = None
    source_url: Optional[str] = None
    utm_source: Optional[str] = None
    utm_medium: Optional[str] = None
    utm_campaign: Optional[str] = None
    referrer: Optional[str] = None
    ip_address: Optional[str] = None
    entry_id_generated: bool = False


@dataclass
class CandidateLead:
    """Typed, partially-filled lead produced by the field extractor."""
    name: str = ''
    email: Optional[str] = None
    phone: Optional[str] = None
    message: str = ''
    enquiry_date: Optional[str] = None
    booked_date: Optional[str] = None
    arrival_date: Optional[str] = None
    departure_date: Optional[str] = None
    adults: int = 0
    children: int = 0
    interested_in: Optional[str] = None
    nationality: Optional[str] = None
    lead_value: float = 0.0
    lead_source: str = 'form_submission'
    # One-letter name-like field that the name slot refused; read by the spam scorer
    short_name_field: Optional[str] = None
    meta: SubmissionMeta = field(default_factory=SubmissionMeta)


# ── Scoring outputs ──────────────────────────────────────────────────────────

@dataclass
class QualityResult:
    score: float
    tier: str
    reasons: List[str] = field(default_factory=list)


@dataclass
class SpamResult:
    score: float
    flags: List[str] = field(default_factory=list)
    is_spam: bool = False


# ── Tagged pipeline result ───────────────────────────────────────────────────

@dataclass
class Accepted:
    lead_id: int
    composite_key: str
    quality: QualityResult
    spam: SpamResult
    status: str

    def to_dict(self) -> Dict[str, Any]:
        return {
            'success': True,
            'leadId': self.lead_id,
            'isDuplicate': False,
            'composite_key': self.composite_key,
            'quality': self.quality.tier,
            'qualityScore': self.quality.score,
            'isSpam': self.spam.is_spam,
            'spamScore': self.spam.score,
            'status': self.status,
        }


@dataclass
class Duplicate:
    lead_id: Optional[int]
    composite_key: str
    raced: bool = False   # lost the insert race after the duplicate check passed

    def to_dict(self) -> Dict[str, Any]:
        return {
            'success': True,
            'isDuplicate': True,
            'leadId': self.lead_id,
            'composite_key': self.composite_key,
            'message': 'Lead already exists',
        }


@dataclass
class Rejected:
    error: LeadflowError

    @property
    def reason(self) -> str:
        return self.error.message

    def to_dict(self) -> Dict[str, Any]:
        return self.error.to_dict()


IngestResult = Union[Accepted, Duplicate, Rejected]
