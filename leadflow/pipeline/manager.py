"""
Pipeline Manager — webhook delivery → stored, scored Lead.

One call per delivery:
  AUTH → SIGNATURE → PARSE → EXTRACT → DEDUP → QUALITY → SPAM → STORE

Returns a tagged IngestResult (Accepted | Duplicate | Rejected). Rejections
are caller errors (bad key, bad signature, unusable payload); store failures
raise DependencyError so the HTTP layer answers 5xx and the vendor redelivers.
"""
import json
import logging
from datetime import datetime, timezone

from leadflow.errors import AuthenticationError, DependencyError, DuplicateLeadError, ValidationError
from leadflow.models.lead import Lead
from leadflow.pipeline.base import Accepted, CandidateLead, Duplicate, Rejected, IngestResult
from leadflow.pipeline.dedup import candidate_key, find_duplicate
from leadflow.pipeline.extraction import FieldExtractor
from leadflow.pipeline.quality import QualityScorer
from leadflow.pipeline.scoring_config import ScoringConfig, get_scoring_config
from leadflow.pipeline.signature import verify_signature
from leadflow.pipeline.spam import SpamScorer

logger = logging.getLogger('pipeline.manager')


def _key_prefix(api_key: str) -> str:
    return (api_key or '')[:10] + '...'


def _reject(error) -> Rejected:
    logger.warning("Webhook rejected (%s): %s", error.status_code, error.message)
    return Rejected(error)


def ingest_submission(raw_body: bytes, api_key: str, signature: str, store,
                      config: ScoringConfig = None, now: datetime = None) -> IngestResult:
    """
    Run one webhook delivery through the pipeline.

    `raw_body` is the exact request body: the signature is computed over
    these bytes, not over re-serialized JSON.
    """
    config = config or get_scoring_config()
    now = now or datetime.now(timezone.utc)

    # ── Auth ──
    if not api_key:
        return _reject(AuthenticationError('Missing API key'))

    website = store.resolve_tenant(api_key)
    if website is None or not website.is_active:
        logger.warning("Unknown or inactive API key %s", _key_prefix(api_key))
        return _reject(AuthenticationError('Invalid or inactive API key'))

    if isinstance(raw_body, str):
        raw_body = raw_body.encode('utf-8')

    if not verify_signature(raw_body, signature, website.webhook_secret):
        return _reject(AuthenticationError('Invalid webhook signature'))

    # ── Parse + extract ──
    try:
        payload = json.loads(raw_body or b'')
    except (ValueError, UnicodeDecodeError):
        return _reject(ValidationError('Request body is not valid JSON'))

    try:
        candidate = FieldExtractor().extract(payload, now=now)
    except ValidationError as e:
        return _reject(e)

    key = candidate_key(website.id, candidate)

    # ── Dedup (fast path; the unique constraint settles races) ──
    existing_id = find_duplicate(store, website.id, candidate)
    if existing_id is not None:
        return Duplicate(lead_id=existing_id, composite_key=key)

    # ── Scoring ──
    quality = QualityScorer(config.quality).score(candidate)
    spam = SpamScorer(config.spam, history=store).score(candidate, tenant_id=website.tenant_id)
    status = 'spam' if spam.is_spam else 'new'

    # ── Store ──
    lead = build_lead(candidate, website, payload, quality, spam, status, now)
    try:
        lead = store.insert_lead(lead, audit_reason='Initial submission')
    except DuplicateLeadError as e:
        winner = store.find_by_composite_key(website.id, candidate.meta.form_id, candidate.meta.entry_id)
        if winner is None:
            # Constraint failure other than the composite key (e.g. a foreign key)
            logger.error("Insert for %s failed an integrity check with no existing lead", key)
            raise DependencyError('Lead store rejected the insert') from e
        logger.info("Lost insert race for %s → lead %s", key, winner.id)
        return Duplicate(lead_id=winner.id, composite_key=key, raced=True)

    store.touch_config(website.id)

    logger.info("Lead %s accepted for %s: quality=%s (%.2f) spam=%s (%.2f)%s",
                lead.id, website.website_name, quality.tier, quality.score,
                spam.is_spam, spam.score,
                ' [generated entry id, not deduplicable]' if candidate.meta.entry_id_generated else '',
                extra={'tenant_id': website.tenant_id, 'lead_id': lead.id, 'composite_key': key})
    return Accepted(
        lead_id=lead.id,
        composite_key=key,
        quality=quality,
        spam=spam,
        status=status,
    )


def build_lead(candidate: CandidateLead, website, payload, quality, spam, status, now) -> Lead:
    """Map a scored CandidateLead onto a Lead row for `website`."""
    meta = candidate.meta
    return Lead(
        tenant_id=website.tenant_id,
        website_config_id=website.id,
        name=candidate.name,
        email=candidate.email,
        phone=candidate.phone,
        message=candidate.message,
        enquiry_date=candidate.enquiry_date,
        booked_date=candidate.booked_date,
        arrival_date=candidate.arrival_date,
        departure_date=candidate.departure_date,
        adults=candidate.adults,
        children=candidate.children,
        interested_in=candidate.interested_in,
        nationality=candidate.nationality,
        lead_value=candidate.lead_value,
        lead_source=candidate.lead_source,
        form_id=meta.form_id,
        form_title=meta.form_title,
        entry_id=meta.entry_id,
        submitted_at=meta.submitted_at or now,
        source_url=meta.source_url,
        utm_source=meta.utm_source,
        utm_medium=meta.utm_medium,
        utm_campaign=meta.utm_campaign,
        referrer=meta.referrer,
        ip_address=meta.ip_address,
        quality_score=quality.score,
        quality_tier=quality.tier,
        quality_reasons=list(quality.reasons),
        spam_score=spam.score,
        spam_flags=list(spam.flags),
        is_spam=spam.is_spam,
        is_duplicate=False,
        status=status,
        webhook_payload=payload,
        created_at=now,
    )
