"""Shared test fixtures."""
import json
from datetime import datetime, timezone

import pytest
from unittest.mock import patch, MagicMock
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from leadflow.database import Base
from leadflow.services.store import LeadStore


@pytest.fixture
def db_engine():
    """In-memory SQLite engine with schema created.

    StaticPool keeps a single connection so every session sees the same DB.
    """
    engine = create_engine(
        'sqlite:///:memory:',
        connect_args={'check_same_thread': False},
        poolclass=StaticPool,
    )
    import leadflow.models.website_config
    import leadflow.models.lead
    import leadflow.models.status_change
    import leadflow.models.spam_rule
    import leadflow.models.daily_report
    Base.metadata.create_all(engine)
    yield engine
    engine.dispose()


@pytest.fixture
def session_factory(db_engine):
    return sessionmaker(bind=db_engine, expire_on_commit=False)


@pytest.fixture
def db_session(session_factory):
    """Session for arranging test data. Rolls back after each test."""
    session = session_factory()
    yield session
    session.rollback()
    session.close()


@pytest.fixture(autouse=True)
def patch_get_session(session_factory):
    """Route the store's default get_session() to the in-memory DB."""
    with patch('leadflow.services.store.get_session', side_effect=session_factory):
        yield


@pytest.fixture
def store(session_factory):
    return LeadStore(session_factory=session_factory)


@pytest.fixture
def mock_queue():
    """Mock RQ queue for the daily report jobs."""
    mock = MagicMock()
    with patch('leadflow.pipeline.reports._get_queue', return_value=mock):
        yield mock


@pytest.fixture
def app():
    """Flask test app."""
    from leadflow import create_app
    app = create_app()
    app.config['TESTING'] = True
    yield app


@pytest.fixture
def client(app):
    """Flask test client."""
    with app.test_client() as c:
        yield c


@pytest.fixture
def make_website(db_session):
    """Factory fixture — persists a WebsiteConfig."""
    from leadflow.models.website_config import WebsiteConfig
    counter = {'n': 0}

    def _make(**overrides):
        counter['n'] += 1
        defaults = dict(
            tenant_id='hotel-1',
            website_name=f'Site {counter["n"]}',
            website_url=f'https://site{counter["n"]}.example',
            api_key=f'bba_{counter["n"]:032x}',
            webhook_secret=None,
            status='active',
            daily_report_enabled=True,
            daily_report_emails=['ops@hotel.example'],
        )
        defaults.update(overrides)
        website = WebsiteConfig(**defaults)
        db_session.add(website)
        db_session.commit()
        return website
    return _make


@pytest.fixture
def make_lead(db_session):
    """Factory fixture — persists a Lead for a website config."""
    from leadflow.models.lead import Lead
    counter = {'n': 0}

    def _make(website, **overrides):
        counter['n'] += 1
        defaults = dict(
            tenant_id=website.tenant_id,
            website_config_id=website.id,
            name='Test Guest',
            email=f'guest{counter["n"]}@example.com',
            phone='+1 555 010 2030',
            message='Looking for a room for two nights',
            form_id='1',
            form_title='Contact Form',
            entry_id=str(counter['n']),
            submitted_at=datetime(2025, 3, 10, 12, 0, tzinfo=timezone.utc),
            quality_score=0.5,
            quality_tier='medium',
            quality_reasons=[],
            spam_score=0.0,
            spam_flags=[],
            is_spam=False,
            is_duplicate=False,
            status='new',
            created_at=datetime.now(timezone.utc),
        )
        defaults.update(overrides)
        lead = Lead(**defaults)
        db_session.add(lead)
        db_session.commit()
        return lead
    return _make


@pytest.fixture
def jane_payload():
    """Label-less submission — fields are classified by value shape alone."""
    return {
        'form_id': '7',
        'entry_id': '1001',
        'date_created': '2025-03-10 09:30:00',
        '1': 'Jane Doe',
        '2': 'jane@x.com',
        '3': '+1 555 111 2222',
        '4': 'Looking for a sea-view room for 2 adults, arriving 2025-03-01',
    }


@pytest.fixture
def raw_body():
    """JSON-encode a payload exactly once, as the form vendor would."""
    def _encode(payload):
        return json.dumps(payload).encode('utf-8')
    return _encode
