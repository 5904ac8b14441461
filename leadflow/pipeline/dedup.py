"""
Duplicate detection — composite identity (website config, form id, entry id).

The lookup here is only the fast path. Two concurrent deliveries of the same
entry can both miss it; the leads table's unique constraint settles the race
and the pipeline manager turns the losing insert into a Duplicate result.
"""
import logging
from typing import Optional

from leadflow.pipeline.base import CandidateLead

logger = logging.getLogger('pipeline.dedup')


def composite_key(website_config_id, form_id, entry_id) -> str:
    """Stable string form of the composite identity."""
    return f'{website_config_id}:{form_id}:{entry_id}'


def candidate_key(website_config_id, lead: CandidateLead) -> str:
    return composite_key(website_config_id, lead.meta.form_id, lead.meta.entry_id)


def find_duplicate(store, website_config_id, lead: CandidateLead) -> Optional[int]:
    """
    Id of the stored lead with the same composite identity, or None.

    Store errors (DependencyError) propagate: an unanswered lookup is never
    read as "not a duplicate".
    """
    existing = store.find_by_composite_key(website_config_id, lead.meta.form_id, lead.meta.entry_id)
    if existing is None:
        return None
    logger.info("Duplicate lead detected: %s → lead %s", candidate_key(website_config_id, lead), existing.id)
    return existing.id
