"""Tests for leadflow.pipeline.spam — content signals, operator rules, repeat submitters."""
from types import SimpleNamespace

import pytest
from unittest.mock import MagicMock

from leadflow.errors import DependencyError
from leadflow.pipeline.base import CandidateLead, SubmissionMeta
from leadflow.pipeline.extraction import FieldExtractor
from leadflow.pipeline.scoring_config import ScoringConfig
from leadflow.pipeline.spam import PATTERNS, SpamScorer, rule_matches


@pytest.fixture
def spam_config():
    return ScoringConfig.default().spam


@pytest.fixture
def history():
    """Store stand-in answering the two behaviour queries."""
    mock = MagicMock()
    mock.spam_rules_for.return_value = []
    mock.count_recent_submissions.return_value = 0
    return mock


def _rule(**overrides):
    defaults = dict(
        rule_name='test rule', rule_type='keyword', rule_value='',
        score_increment=0.2, is_blocking=False,
    )
    defaults.update(overrides)
    return SimpleNamespace(**defaults)


def _clean_lead(**overrides):
    defaults = dict(
        name='Jane Doe',
        email='jane@example.com',
        phone='+1 555 111 2222',
        message='Do you have a double room free next weekend?',
        meta=SubmissionMeta(ip_address='10.0.0.5'),
    )
    defaults.update(overrides)
    return CandidateLead(**defaults)


# ── Built-in patterns ────────────────────────────────────────────────────────

class TestPatterns:

    def test_clean_lead_scores_zero(self, spam_config):
        result = SpamScorer(spam_config).score(_clean_lead())
        assert result.score == 0.0
        assert result.flags == []
        assert result.is_spam is False

    def test_junk_contact_details_are_spam(self, spam_config):
        lead = CandidateLead(email='asdfghjkl@x', phone='1111111111')
        result = SpamScorer(spam_config).score(lead)
        assert result.flags == ['invalid_email', 'sequential_phone', 'random_email']
        assert result.score == 0.8
        assert result.is_spam is True

    def test_threshold_is_inclusive(self, spam_config):
        lead = CandidateLead(email='bad-email', message='http://spam.example')
        result = SpamScorer(spam_config).score(lead)
        assert result.flags == ['invalid_email', 'non_alpha_message']
        assert result.score == 0.6
        assert result.is_spam is True

    def test_missing_contact(self, spam_config):
        result = SpamScorer(spam_config).score(CandidateLead(message='Hello there, nice hotel'))
        assert result.flags == ['missing_contact']
        assert result.is_spam is False

    def test_score_is_clamped(self, spam_config):
        lead = CandidateLead(
            name='x',
            email='qwrtzpsdf',
            phone='12345',
            message='BUY NOW!!! http://a.example http://b.example http://c.example',
        )
        result = SpamScorer(spam_config).score(lead)
        assert result.score == 1.0

    @pytest.mark.parametrize('message,flag', [
        ('THIS IS THE BEST OFFER EVER, CLICK', 'all_caps'),
        ('see http://a.co and http://b.co or www.c.co', 'multiple_urls'),
        ('thisisamessagewithoutanyspacesatall', 'no_spaces'),
        ('Really???', 'excessive_punctuation'),
        ('$$$ 1000 2000 3000 4000 $$$', 'non_alpha_message'),
    ])
    def test_message_patterns(self, message, flag):
        assert PATTERNS[flag](CandidateLead(message=message))

    def test_patterns_ignore_missing_fields(self):
        for name, predicate in PATTERNS.items():
            if name == 'missing_contact':
                continue
            assert predicate(CandidateLead()) is False, name

    def test_wraparound_sequence_is_sequential_phone(self, spam_config):
        result = SpamScorer(spam_config).score(_clean_lead(phone='1234567890'))
        assert 'sequential_phone' in result.flags


class TestSingleCharacterName:

    def test_one_letter_name_field_from_payload(self, spam_config):
        lead = FieldExtractor().extract({
            '1': 'J',
            '2': 'j@example.com',
            '3': 'Please send me your room prices for June',
        })
        assert lead.name == 'j@example.com'
        assert lead.short_name_field == 'J'
        assert 'single_char_name' in SpamScorer(spam_config).score(lead).flags

    def test_labeled_name_initial(self, spam_config):
        lead = FieldExtractor().extract({'fields': [
            {'id': 1, 'label': 'First Name', 'value': 'Q'},
            {'id': 2, 'label': 'Email', 'value': 'guest@example.com'},
        ]})
        assert 'single_char_name' in SpamScorer(spam_config).score(lead).flags

    def test_one_letter_non_name_field_ignored(self):
        lead = FieldExtractor().extract({'fields': [
            {'id': 1, 'label': 'Room Grade', 'value': 'A'},
            {'id': 2, 'label': 'Email', 'value': 'guest@example.com'},
        ]})
        assert lead.short_name_field is None


# ── Operator rules ───────────────────────────────────────────────────────────

class TestSpamRules:

    def test_blocking_rule_short_circuits(self, spam_config, history):
        history.spam_rules_for.return_value = [
            _rule(rule_name='burner domain', rule_type='email_domain',
                  rule_value='mailinator.com', is_blocking=True),
        ]
        lead = _clean_lead(email='someone@Mailinator.com')
        result = SpamScorer(spam_config, history=history).score(lead, tenant_id='hotel-1')
        assert result.score == 1.0
        assert result.is_spam is True
        assert result.flags == ['burner domain']
        history.count_recent_submissions.assert_not_called()

    def test_rule_adds_increment_and_flag(self, spam_config, history):
        history.spam_rules_for.return_value = [
            _rule(rule_name='crypto', rule_value='bitcoin', score_increment=0.25),
        ]
        lead = _clean_lead(message='Can I pay for the room with Bitcoin?')
        result = SpamScorer(spam_config, history=history).score(lead, tenant_id='hotel-1')
        assert result.flags == ['crypto']
        assert result.score == 0.25
        assert result.is_spam is False
        history.spam_rules_for.assert_called_once_with('hotel-1')

    def test_rules_skipped_without_tenant(self, spam_config, history):
        SpamScorer(spam_config, history=history).score(_clean_lead())
        history.spam_rules_for.assert_not_called()

    def test_rule_types(self):
        lead = _clean_lead(message='short')
        assert rule_matches(_rule(rule_type='length', rule_value='10'), lead)
        assert not rule_matches(_rule(rule_type='length', rule_value='ten'), lead)
        assert rule_matches(_rule(rule_type='ip', rule_value='10.0.0.5'), lead)
        assert not rule_matches(_rule(rule_type='ip', rule_value='10.0.0.6'), lead)
        assert not rule_matches(_rule(rule_type='unknown', rule_value='x'), lead)

    def test_pattern_rule_reuses_builtin_predicates(self):
        lead = _clean_lead(message='WHY IS NOBODY ANSWERING THE PHONE')
        assert rule_matches(_rule(rule_type='pattern', rule_value='all_caps'), lead)
        assert not rule_matches(_rule(rule_type='pattern', rule_value='no_such_pattern'), lead)


# ── Repeat submitters ────────────────────────────────────────────────────────

class TestRepeatSubmitter:

    def test_flagged_at_limit(self, spam_config, history):
        history.count_recent_submissions.return_value = 3
        result = SpamScorer(spam_config, history=history).score(_clean_lead(), tenant_id='hotel-1')
        assert result.flags == ['repeat_submitter']
        assert result.score == 0.4
        history.count_recent_submissions.assert_called_once_with(
            'hotel-1', 10, ip_address='10.0.0.5', email='jane@example.com',
        )

    def test_below_limit(self, spam_config, history):
        history.count_recent_submissions.return_value = 2
        result = SpamScorer(spam_config, history=history).score(_clean_lead(), tenant_id='hotel-1')
        assert result.flags == []

    def test_store_failure_propagates(self, spam_config, history):
        history.count_recent_submissions.side_effect = DependencyError('timeout')
        with pytest.raises(DependencyError):
            SpamScorer(spam_config, history=history).score(_clean_lead(), tenant_id='hotel-1')
