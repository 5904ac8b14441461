"""Tests for leadflow.pipeline.manager — ingest_submission() end to end over SQLite."""
import pytest
from unittest.mock import MagicMock, patch

from leadflow.errors import AuthenticationError, DependencyError, DuplicateLeadError, ValidationError
from leadflow.models.lead import Lead
from leadflow.models.status_change import LeadStatusChange
from leadflow.pipeline.base import Accepted, Duplicate, Rejected
from leadflow.pipeline.manager import ingest_submission
from leadflow.pipeline.signature import compute_signature


SECRET = '0123456789abcdef0123456789abcdef'


@pytest.fixture
def website(make_website):
    return make_website(api_key='bba_' + 'a' * 32)


def _ingest(store, body, api_key='bba_' + 'a' * 32, signature=None):
    return ingest_submission(body, api_key, signature, store)


# ── Rejections ───────────────────────────────────────────────────────────────

class TestRejections:

    def test_missing_api_key(self, store, website, raw_body, jane_payload):
        result = _ingest(store, raw_body(jane_payload), api_key=None)
        assert isinstance(result, Rejected)
        assert isinstance(result.error, AuthenticationError)
        assert result.error.status_code == 401

    def test_unknown_api_key(self, store, website, raw_body, jane_payload):
        result = _ingest(store, raw_body(jane_payload), api_key='bba_' + 'f' * 32)
        assert isinstance(result, Rejected)
        assert result.reason == 'Invalid or inactive API key'

    def test_inactive_website(self, store, make_website, raw_body, jane_payload):
        make_website(api_key='bba_' + 'b' * 32, status='inactive')
        result = _ingest(store, raw_body(jane_payload), api_key='bba_' + 'b' * 32)
        assert isinstance(result, Rejected)
        assert result.error.status_code == 401

    def test_missing_signature_when_secret_configured(self, store, make_website, raw_body, jane_payload):
        make_website(api_key='bba_' + 'c' * 32, webhook_secret=SECRET)
        result = _ingest(store, raw_body(jane_payload), api_key='bba_' + 'c' * 32)
        assert isinstance(result, Rejected)
        assert result.reason == 'Invalid webhook signature'

    def test_bad_signature(self, store, make_website, raw_body, jane_payload):
        make_website(api_key='bba_' + 'c' * 32, webhook_secret=SECRET)
        body = raw_body(jane_payload)
        result = _ingest(store, body, api_key='bba_' + 'c' * 32,
                         signature=compute_signature(body, 'wrong-secret'))
        assert isinstance(result, Rejected)

    def test_invalid_json(self, store, website):
        result = _ingest(store, b'{not json')
        assert isinstance(result, Rejected)
        assert isinstance(result.error, ValidationError)
        assert result.error.status_code == 400

    def test_no_form_fields(self, store, website, raw_body):
        result = _ingest(store, raw_body({'form_id': '1', 'entry_id': '9'}))
        assert isinstance(result, Rejected)
        assert result.error.status_code == 400

    def test_rejections_store_nothing(self, store, website, db_session):
        _ingest(store, b'[]')
        assert db_session.query(Lead).count() == 0


# ── Acceptance ───────────────────────────────────────────────────────────────

class TestAccepted:

    def test_new_lead(self, store, website, db_session, raw_body, jane_payload):
        result = _ingest(store, raw_body(jane_payload))
        assert isinstance(result, Accepted)
        assert result.composite_key == f'{website.id}:7:1001'
        assert result.quality.tier == 'medium'
        assert result.quality.score == 0.65
        assert result.spam.is_spam is False
        assert result.status == 'new'

        lead = db_session.get(Lead, result.lead_id)
        assert lead.name == 'Jane Doe'
        assert lead.email == 'jane@x.com'
        assert lead.tenant_id == website.tenant_id
        assert lead.quality_tier == 'medium'
        assert lead.webhook_payload['entry_id'] == '1001'

    def test_initial_audit_row(self, store, website, db_session, raw_body, jane_payload):
        result = _ingest(store, raw_body(jane_payload))
        changes = db_session.query(LeadStatusChange).filter_by(lead_id=result.lead_id).all()
        assert len(changes) == 1
        assert changes[0].old_value is None
        assert changes[0].new_value == 'new'
        assert changes[0].changed_by is None
        assert changes[0].change_reason == 'Initial submission'

    def test_touches_website_config(self, store, website, raw_body, jane_payload):
        _ingest(store, raw_body(jane_payload))
        assert store.resolve_tenant(website.api_key).last_sync_at is not None

    def test_valid_signature(self, store, make_website, raw_body, jane_payload):
        make_website(api_key='bba_' + 'c' * 32, webhook_secret=SECRET)
        body = raw_body(jane_payload)
        result = _ingest(store, body, api_key='bba_' + 'c' * 32,
                         signature=compute_signature(body, SECRET))
        assert isinstance(result, Accepted)

    def test_no_secret_means_no_signature_needed(self, store, website, raw_body, jane_payload):
        assert isinstance(_ingest(store, raw_body(jane_payload), signature=None), Accepted)

    def test_spam_lead_gets_spam_status(self, store, website, db_session, raw_body):
        result = _ingest(store, raw_body({
            'form_id': '7', 'entry_id': '2001',
            '1': 'asdfghjkl@x', '2': '1111111111',
        }))
        assert isinstance(result, Accepted)
        assert result.spam.is_spam is True
        assert result.status == 'spam'
        assert db_session.get(Lead, result.lead_id).status == 'spam'

    def test_repeat_submitter(self, store, website, make_lead, raw_body, jane_payload):
        for _ in range(3):
            make_lead(website, email='jane@x.com')
        result = _ingest(store, raw_body(jane_payload))
        assert 'repeat_submitter' in result.spam.flags


# ── Idempotence ──────────────────────────────────────────────────────────────

class TestDuplicates:

    def test_redelivery_returns_first_lead(self, store, website, db_session, raw_body, jane_payload):
        body = raw_body(jane_payload)
        first = _ingest(store, body)
        second = _ingest(store, body)
        assert isinstance(second, Duplicate)
        assert second.lead_id == first.lead_id
        assert second.raced is False
        assert db_session.query(Lead).count() == 1

    def test_same_entry_on_another_site_is_new(self, store, website, make_website, raw_body, jane_payload):
        make_website(api_key='bba_' + 'd' * 32)
        first = _ingest(store, raw_body(jane_payload))
        second = _ingest(store, raw_body(jane_payload), api_key='bba_' + 'd' * 32)
        assert isinstance(second, Accepted)
        assert second.lead_id != first.lead_id

    def test_lost_insert_race(self, store, website, db_session, raw_body, jane_payload):
        winner = _ingest(store, raw_body(jane_payload))
        # Both deliveries passed the duplicate check before either inserted
        with patch('leadflow.pipeline.manager.find_duplicate', return_value=None):
            loser = _ingest(store, raw_body(jane_payload))
        assert isinstance(loser, Duplicate)
        assert loser.raced is True
        assert loser.lead_id == winner.lead_id
        assert db_session.query(Lead).count() == 1


# ── Dependency failures ──────────────────────────────────────────────────────

class TestDependencyFailures:

    def test_tenant_lookup_failure_propagates(self, raw_body, jane_payload):
        store = MagicMock()
        store.resolve_tenant.side_effect = DependencyError('timeout')
        with pytest.raises(DependencyError):
            _ingest(store, raw_body(jane_payload))

    def test_dedup_failure_propagates(self, store, website, raw_body, jane_payload):
        with patch.object(store, 'find_by_composite_key', side_effect=DependencyError('timeout')):
            with pytest.raises(DependencyError):
                _ingest(store, raw_body(jane_payload))

    def test_integrity_failure_without_existing_lead(self, store, website, db_session, raw_body, jane_payload):
        # e.g. a foreign-key violation: nothing holds the composite key
        with patch.object(store, 'insert_lead', side_effect=DuplicateLeadError('1:7:1001')):
            with pytest.raises(DependencyError):
                _ingest(store, raw_body(jane_payload))
        assert db_session.query(Lead).count() == 0


class TestAcceptedLogLine:

    def test_generated_entry_id_is_called_out(self, store, website, raw_body, caplog):
        payload = {'1': 'Sam Rivers', '2': 'sam@example.com', '3': 'Two nights in a garden suite please'}
        with caplog.at_level('INFO', logger='pipeline.manager'):
            result = _ingest(store, raw_body(payload))
        assert isinstance(result, Accepted)
        accepted = [r for r in caplog.records if 'accepted' in r.getMessage()]
        assert 'generated entry id' in accepted[0].getMessage()
        assert accepted[0].tenant_id == 'hotel-1'

    def test_delivered_entry_id_not_flagged(self, store, website, raw_body, jane_payload, caplog):
        with caplog.at_level('INFO', logger='pipeline.manager'):
            _ingest(store, raw_body(jane_payload))
        accepted = [r for r in caplog.records if 'accepted' in r.getMessage()]
        assert 'generated entry id' not in accepted[0].getMessage()
