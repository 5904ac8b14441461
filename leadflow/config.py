"""
Centralized configuration — env vars, enumerations, extraction skip-set.
"""
import os


# ── Logging ──────────────────────────────────────────────────────────────────
LOG_LEVEL = os.getenv('LOG_LEVEL', 'INFO')
LOG_FORMAT = os.getenv('LOG_FORMAT', 'text')

# ── Redis (RQ queue for daily reports) ───────────────────────────────────────
REDIS_URL = os.getenv('REDIS_URL', 'redis://localhost:6379/0')

# ── PostgreSQL ────────────────────────────────────────────────────────────────
DATABASE_URL = os.getenv('DATABASE_URL', 'sqlite:///local.db')

# Every store round-trip is bounded by this (statement + pool checkout)
STORE_TIMEOUT_SECONDS = float(os.getenv('STORE_TIMEOUT_SECONDS', '5'))

# ── Slack notifications ──────────────────────────────────────────────────────
SLACK_WEBHOOK_URL = os.getenv('SLACK_WEBHOOK_URL')

# ── Auth ─────────────────────────────────────────────────────────────────────
CRON_SECRET = os.getenv('CRON_SECRET')
ADMIN_API_TOKEN = os.getenv('ADMIN_API_TOKEN')

# ── Reports ──────────────────────────────────────────────────────────────────
APP_URL = os.getenv('APP_URL', 'http://localhost:8080')

# ── Scoring ──────────────────────────────────────────────────────────────────
SCORING_CONFIG_PATH = os.getenv('SCORING_CONFIG_PATH')

# ── Lead enumerations ────────────────────────────────────────────────────────
LEAD_STATUSES = [
    'new',
    'contacted',
    'qualified',
    'quote_sent',
    'confirmed',
    'declined',
    'converted',
    'spam',
    'rejected',
    'no_response',
]

LEAD_SOURCES = [
    'form_submission',
    'direct_email',
    'phone_call',
    'live_chat',
    'social_media',
    'referral',
    'other',
]

QUALITY_TIERS = ['high', 'medium', 'low']

WEBSITE_STATUSES = ['active', 'inactive', 'testing']

# ── Form-vendor housekeeping keys, never treated as lead content ─────────────
# Entries ending in '*' match by prefix.
DEFAULT_SYSTEM_FIELDS = [
    'id', 'form_id', 'post_id', 'date_created', 'date_updated', 'is_starred',
    'is_read', 'ip', 'source_url', 'user_agent', 'currency', 'payment_*',
    'transaction_id', 'is_fulfilled', 'created_by', 'transaction_type',
    'status', 'source_id', 'submission_speeds', 'entry_id', 'form_title',
    'title', 'source_type', 'referrer', 'utm_*',
]

EXTRA_SYSTEM_FIELDS = [
    f.strip() for f in os.getenv('EXTRA_SYSTEM_FIELDS', '').split(',') if f.strip()
]

SYSTEM_FIELDS = DEFAULT_SYSTEM_FIELDS + EXTRA_SYSTEM_FIELDS
