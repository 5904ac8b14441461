"""
Spam scoring — independent 0-1 suspicion score + verdict.

Three layers, evaluated in order:
  1. Built-in content signals (malformed contact details, link-heavy or
     shouting messages, junk names), weighted by SpamConfig.
  2. Operator SpamRules for the tenant (plus global rules). A matching
     blocking rule short-circuits to score 1.0.
  3. Behaviour: too many submissions from the same IP / email inside the
     sliding window. Needs a store round-trip, so it runs last.

Spam and quality are scored independently; a lead can look high-quality and
still be spam.
"""
import logging
import re
from typing import Callable, Dict, List, Optional

from leadflow.pipeline.base import CandidateLead, SpamResult
from leadflow.pipeline.scoring_config import SpamConfig
from leadflow.pipeline.validators import (
    is_valid_email, is_valid_phone, is_sequential_phone,
)

logger = logging.getLogger('pipeline.spam')

URL_RE = re.compile(r'https?://\S+|www\.\S+', re.IGNORECASE)
BARE_LINK_RE = re.compile(r'^(https?://|www\.)\S+$', re.IGNORECASE)
CONSONANT_RUN_RE = re.compile(r'[bcdfghjklmnpqrstvwxyz]{6,}', re.IGNORECASE)


# ── Pattern predicates (also addressable by name from SpamRule 'pattern') ───

def _all_caps(lead):
    message = lead.message or ''
    letters = [c for c in message if c.isascii() and c.isalpha()]
    upper = [c for c in letters if c.isupper()]
    return len(letters) > 10 and len(upper) / len(letters) > 0.7


def _multiple_urls(lead):
    return len(URL_RE.findall(lead.message or '')) >= 3


def _no_spaces(lead):
    message = lead.message or ''
    spaces = sum(1 for c in message if c.isspace())
    return len(message) > 20 and spaces < len(message) * 0.05


def _excessive_punctuation(lead):
    return bool(re.search(r'[!?]{3,}', lead.message or ''))


def _random_email(lead):
    if not lead.email:
        return False
    return bool(CONSONANT_RUN_RE.search(lead.email.split('@')[0]))


def _invalid_email(lead):
    return lead.email is not None and not is_valid_email(lead.email)


def _invalid_phone(lead):
    return lead.phone is not None and not is_valid_phone(lead.phone)


def _sequential_phone(lead):
    return lead.phone is not None and is_sequential_phone(lead.phone)


def _missing_contact(lead):
    return not lead.email and not lead.phone


def _non_alpha_message(lead):
    message = (lead.message or '').strip()
    if BARE_LINK_RE.match(message):
        return True
    visible = [c for c in message if not c.isspace()]
    if len(visible) < 10:
        return False
    letters = sum(1 for c in visible if c.isalpha())
    return letters / len(visible) < 0.5


def _single_char_name(lead):
    return len((lead.name or '').strip()) == 1 or lead.short_name_field is not None


PATTERNS: Dict[str, Callable[[CandidateLead], bool]] = {
    'invalid_email': _invalid_email,
    'invalid_phone': _invalid_phone,
    'sequential_phone': _sequential_phone,
    'missing_contact': _missing_contact,
    'multiple_urls': _multiple_urls,
    'non_alpha_message': _non_alpha_message,
    'no_spaces': _no_spaces,
    'all_caps': _all_caps,
    'excessive_punctuation': _excessive_punctuation,
    'random_email': _random_email,
    'single_char_name': _single_char_name,
}


def rule_matches(rule, lead: CandidateLead) -> bool:
    """Evaluate one SpamRule (email_domain/keyword/length/pattern/ip) against a lead."""
    value = (rule.rule_value or '').strip()
    rule_type = rule.rule_type

    if rule_type == 'email_domain':
        if not lead.email or '@' not in lead.email:
            return False
        return lead.email.rsplit('@', 1)[1].lower() == value.lower()
    if rule_type == 'keyword':
        return bool(value) and value.lower() in (lead.message or '').lower()
    if rule_type == 'length':
        try:
            return len(lead.message or '') < int(value)
        except ValueError:
            logger.warning("Spam rule '%s' has non-numeric length %r", rule.rule_name, value)
            return False
    if rule_type == 'pattern':
        predicate = PATTERNS.get(value)
        return bool(predicate and predicate(lead))
    if rule_type == 'ip':
        return bool(value) and lead.meta.ip_address == value

    logger.warning("Unknown spam rule type '%s' (rule %s)", rule_type, rule.rule_name)
    return False


class SpamScorer:
    """
    Scores a CandidateLead for one tenant.

    `history` is the store collaborator; it answers spam_rules_for() and
    count_recent_submissions(). Its errors propagate — an unanswered
    behaviour check is never read as "not spam".
    """

    def __init__(self, config: SpamConfig, history=None):
        self.config = config
        self.history = history

    def score(self, lead: CandidateLead, tenant_id: Optional[str] = None) -> SpamResult:
        total = 0.0
        flags: List[str] = []

        for key, predicate in PATTERNS.items():
            weight = self.config.weights.get(key, 0.0)
            if weight > 0 and predicate(lead):
                total += weight
                flags.append(key)

        if self.history is not None and tenant_id is not None:
            for rule in self.history.spam_rules_for(tenant_id):
                if not rule_matches(rule, lead):
                    continue
                flags.append(rule.rule_name)
                if rule.is_blocking:
                    logger.info("Blocking spam rule '%s' matched", rule.rule_name)
                    return SpamResult(score=1.0, flags=flags, is_spam=True)
                total += rule.score_increment or 0.0

            if self._is_repeat_submitter(lead, tenant_id):
                total += self.config.weights.get('repeat_submitter', 0.0)
                flags.append('repeat_submitter')

        score = round(min(max(total, 0.0), 1.0), 4)
        return SpamResult(score=score, flags=flags, is_spam=score >= self.config.threshold)

    def _is_repeat_submitter(self, lead: CandidateLead, tenant_id: str) -> bool:
        if self.config.weights.get('repeat_submitter', 0.0) <= 0:
            return False
        if not lead.meta.ip_address and not lead.email:
            return False
        recent = self.history.count_recent_submissions(
            tenant_id,
            self.config.repeat_window_minutes,
            ip_address=lead.meta.ip_address,
            email=lead.email,
        )
        return recent >= self.config.repeat_max_submissions
