"""
Field extraction — unstructured form payload → CandidateLead.

Form layouts vary per customer site and field keys are usually opaque
numeric ids, so slots are filled by the *shape* of each value (and its label
when the vendor sends one). Fields are visited in payload order; each field
goes to at most one slot, the first classifier that matches wins, and a slot
that is already filled is never overwritten. Payload order therefore decides
ties; that is relied on by forms already in production.
"""
import logging
import re
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Callable, Dict, Iterable, List, Optional

from leadflow.config import LEAD_SOURCES, SYSTEM_FIELDS
from leadflow.errors import ValidationError
from leadflow.pipeline.base import CandidateLead, FieldValue, SubmissionMeta

logger = logging.getLogger('pipeline.extraction')

PHONE_RE = re.compile(r'[\d\-()+\s]{10,}')
NAME_RE = re.compile(r"[a-zA-Z\s\-'.]+")
LEADING_INT_RE = re.compile(r'\s*([+-]?\d+)')
LEADING_NUMBER_RE = re.compile(r'\d+(?:\.\d*)?|\.\d+')

ARRIVAL_LABELS = ('arrival', 'check-in', 'check in', 'from date')
DEPARTURE_LABELS = ('departure', 'check-out', 'check out', 'to date')
ENQUIRY_LABELS = ('enquiry date', 'inquiry date')
BOOKED_LABELS = ('booked date', 'booking date', 'confirmed date')
ADULT_LABELS = ('adults', 'adult')
CHILD_LABELS = ('children', 'child', 'kids')
INTEREST_LABELS = ('interested in', 'room type', 'package', 'accommodation')
NATIONALITY_LABELS = ('nationality', 'country')
VALUE_LABELS = ('budget', 'value', 'amount')

SOURCE_TYPES = {
    'email': 'direct_email',
    'chat': 'live_chat',
}


def lead_source_for(source_type) -> str:
    """Vendor source_type → one of LEAD_SOURCES (form_submission when unknown)."""
    if not isinstance(source_type, str):
        return 'form_submission'
    if source_type in SOURCE_TYPES:
        return SOURCE_TYPES[source_type]
    if source_type in LEAD_SOURCES:
        return source_type
    return 'form_submission'


# ── Value parsing ────────────────────────────────────────────────────────────

def parse_leading_int(text: str) -> Optional[int]:
    """Integer prefix of text ("2 adults" → 2), or None."""
    m = LEADING_INT_RE.match(text)
    return int(m.group(1)) if m else None


def parse_amount(text: str) -> Optional[float]:
    """Numeric value hidden in a money-ish string ("€1,250.50" → 1250.5), or None."""
    m = LEADING_NUMBER_RE.match(re.sub(r'[^\d.]', '', text))
    return float(m.group(0)) if m else None


def _label_has(fv: FieldValue, words: Iterable[str]) -> bool:
    label = fv.label_lower
    return bool(label) and any(w in label for w in words)


# ── Classifier chain ─────────────────────────────────────────────────────────

@dataclass(frozen=True)
class Classifier:
    """One slot of the candidate lead and the predicate that claims a field for it."""
    slot: str
    matches: Callable[[FieldValue], bool]
    convert: Callable[[str], Any] = str

    def claims(self, fv: FieldValue, lead: CandidateLead) -> bool:
        return not getattr(lead, self.slot) and self.matches(fv)

    def assign(self, fv: FieldValue, lead: CandidateLead):
        setattr(lead, self.slot, self.convert(fv.text))


def _looks_like_email(fv):
    return '@' in fv.text and len(fv.text) < 100


def _looks_like_phone(fv):
    return bool(PHONE_RE.search(fv.text)) and len(fv.text) < 30


def _looks_like_name(fv):
    text = fv.text
    return 2 < len(text) < 100 and '@' not in text and bool(NAME_RE.fullmatch(text))


def _looks_like_initial(fv):
    return len(fv.text) == 1 and fv.text.isalpha() and (not fv.label or 'name' in fv.label_lower)


def _is_count(words):
    return lambda fv: _label_has(fv, words) and parse_leading_int(fv.text) is not None


def _is_labeled(words):
    return lambda fv: _label_has(fv, words)


CLASSIFIERS: List[Classifier] = [
    Classifier('email', _looks_like_email),
    Classifier('phone', _looks_like_phone),
    Classifier('name', _looks_like_name),
    Classifier('arrival_date', _is_labeled(ARRIVAL_LABELS)),
    Classifier('departure_date', _is_labeled(DEPARTURE_LABELS)),
    Classifier('enquiry_date', _is_labeled(ENQUIRY_LABELS)),
    Classifier('booked_date', _is_labeled(BOOKED_LABELS)),
    Classifier('adults', _is_count(ADULT_LABELS), parse_leading_int),
    Classifier('children', _is_count(CHILD_LABELS), parse_leading_int),
    Classifier('interested_in', _is_labeled(INTEREST_LABELS)),
    Classifier('nationality', _is_labeled(NATIONALITY_LABELS)),
    Classifier('lead_value', lambda fv: _label_has(fv, VALUE_LABELS) and parse_amount(fv.text) is not None,
               parse_amount),
    Classifier('message', lambda fv: len(fv.text) > 20),
]


# ── Extractor ────────────────────────────────────────────────────────────────

class FieldExtractor:
    """
    Builds a CandidateLead from a raw webhook payload.

    Pure function of (payload, now): `now` only stands in for a missing
    submission timestamp or entry id.
    """

    def __init__(self, system_fields: Iterable[str] = None, classifiers: List[Classifier] = None):
        fields = list(SYSTEM_FIELDS if system_fields is None else system_fields)
        self.system_exact = {f for f in fields if not f.endswith('*')}
        self.system_prefixes = tuple(f[:-1] for f in fields if f.endswith('*'))
        self.classifiers = classifiers or CLASSIFIERS

    def is_system_field(self, key: str) -> bool:
        return key in self.system_exact or (bool(self.system_prefixes) and key.startswith(self.system_prefixes))

    def content_fields(self, payload: Dict[str, Any]) -> Dict[str, FieldValue]:
        """Non-blank, non-housekeeping fields in payload order."""
        fields = {}
        for key, raw in _field_container(payload).items():
            if self.is_system_field(str(key)):
                continue
            fv = FieldValue.from_raw(raw)
            if fv.text:
                fields[str(key)] = fv
        return fields

    def extract(self, payload: Any, now: datetime = None) -> CandidateLead:
        if not isinstance(payload, dict):
            raise ValidationError('Payload must be a JSON object')

        now = now or datetime.now(timezone.utc)
        fields = self.content_fields(payload)
        if not fields:
            raise ValidationError('Payload contains no form fields')

        lead = CandidateLead()
        for fv in fields.values():
            for classifier in self.classifiers:
                if classifier.claims(fv, lead):
                    classifier.assign(fv, lead)
                    break
            else:
                if lead.short_name_field is None and _looks_like_initial(fv):
                    lead.short_name_field = fv.text

        _apply_fallbacks(lead, fields.values())
        lead.lead_source = lead_source_for(payload.get('source_type'))
        lead.meta = _submission_meta(payload, now)
        return lead


def _field_container(payload: Dict[str, Any]) -> Dict[str, Any]:
    """Fields live in `fields`, `entry`, or the payload root — first one present wins."""
    container = payload.get('fields') or payload.get('entry') or payload
    if isinstance(container, list):
        # [{id, label, value}, ...] layout
        return {
            str(item.get('id', idx)): item
            for idx, item in enumerate(container) if isinstance(item, dict)
        }
    if not isinstance(container, dict):
        return payload
    return container


def _apply_fallbacks(lead: CandidateLead, values: Iterable[FieldValue]):
    """Guarantee name and message are never empty."""
    if not lead.message:
        longest = ''
        for fv in values:
            if len(fv.text) > len(longest):
                longest = fv.text
        lead.message = longest

    if not lead.name:
        lead.name = lead.email or lead.phone or 'Anonymous'

    if len(lead.message) < 5:
        lead.message = synthesize_message(lead)


def synthesize_message(lead: CandidateLead) -> str:
    """Describe the booking details when the visitor left no usable message."""
    parts = []
    if lead.interested_in:
        parts.append(f'Room: {lead.interested_in}')
    if lead.arrival_date:
        parts.append(f'Check-in: {lead.arrival_date}')
    if lead.departure_date:
        parts.append(f'Check-out: {lead.departure_date}')
    if lead.adults:
        parts.append(f"{lead.adults} adult{'s' if lead.adults > 1 else ''}")
    if lead.children:
        parts.append(f"{lead.children} child{'ren' if lead.children != 1 else ''}")

    if parts:
        return 'Booking enquiry - ' + ', '.join(parts)
    return 'New booking enquiry from contact form'


def _submission_meta(payload: Dict[str, Any], now: datetime) -> SubmissionMeta:
    entry = payload.get('entry') if isinstance(payload.get('entry'), dict) else {}
    entry_id = payload.get('entry_id') or entry.get('id')
    generated = not entry_id
    if generated:
        entry_id = str(int(now.timestamp() * 1000))
        logger.warning("Payload has no entry id — using %s, redelivery cannot be deduplicated", entry_id)

    return SubmissionMeta(
        form_id=str(payload.get('form_id') or payload.get('id') or 'unknown'),
        entry_id=str(entry_id),
        form_title=str(payload.get('form_title') or payload.get('title') or 'Contact Form'),
        submitted_at=parse_timestamp(payload.get('date_created')) or now,
        source_url=payload.get('source_url') or None,
        utm_source=payload.get('utm_source') or None,
        utm_medium=payload.get('utm_medium') or None,
        utm_campaign=payload.get('utm_campaign') or None,
        referrer=payload.get('referrer') or None,
        ip_address=payload.get('ip') or None,
        entry_id_generated=generated,
    )


def parse_timestamp(value: Any) -> Optional[datetime]:
    """ISO-ish timestamp → aware datetime (naive values are UTC), or None."""
    if not value or not isinstance(value, str):
        return None
    try:
        dt = datetime.fromisoformat(value.strip().replace('Z', '+00:00'))
    except ValueError:
        return None
    if dt.tzinfo is None:
        return dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc)
