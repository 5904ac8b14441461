"""
Lead store — the persistence collaborator of the ingestion pipeline.

Every method is a short, single round-trip on its own session. SQLAlchemy
failures (timeouts included) surface as DependencyError so the webhook
answers 5xx and the form vendor redelivers; an insert that hits the
composite-identity constraint surfaces as DuplicateLeadError.
"""
import logging
from contextlib import contextmanager
from datetime import date, datetime, time, timedelta, timezone
from typing import List, Optional

from sqlalchemy import func, or_
from sqlalchemy.exc import IntegrityError, SQLAlchemyError

from leadflow.config import LEAD_STATUSES
from leadflow.database import get_session
from leadflow.errors import DependencyError, DuplicateLeadError, LeadflowError, ValidationError
from leadflow.models.daily_report import DailyLeadReport
from leadflow.models.lead import Lead
from leadflow.models.spam_rule import SpamRule
from leadflow.models.status_change import LeadStatusChange
from leadflow.models.website_config import WebsiteConfig

logger = logging.getLogger('services.store')


def day_bounds(day: date):
    """[00:00, next 00:00) of a UTC calendar day."""
    start = datetime.combine(day, time.min, tzinfo=timezone.utc)
    return start, start + timedelta(days=1)


class LeadStore:
    """
    SQLAlchemy-backed store.

    Usage:
        store = LeadStore()                        # production sessions
        store = LeadStore(session_factory=Session) # tests
    """

    def __init__(self, session_factory=None):
        self.session_factory = session_factory

    # ── Session handling ──────────────────────────────────────────────

    @contextmanager
    def _session(self, operation: str):
        session = (self.session_factory or get_session)()
        try:
            yield session
        except LeadflowError:
            session.rollback()
            raise
        except SQLAlchemyError as e:
            session.rollback()
            logger.error("Store %s failed: %s", operation, e)
            raise DependencyError(f'Lead store unavailable ({operation})') from e
        finally:
            session.close()

    # ── Tenants ───────────────────────────────────────────────────────

    def resolve_tenant(self, api_key: str) -> Optional[WebsiteConfig]:
        """Website config for an API key (active or not), or None."""
        with self._session('resolve_tenant') as session:
            return session.query(WebsiteConfig).filter_by(api_key=api_key).first()

    def touch_config(self, config_id: int):
        with self._session('touch_config') as session:
            config = session.get(WebsiteConfig, config_id)
            if config is not None:
                config.last_sync_at = datetime.now(timezone.utc)
                session.commit()

    def create_website_config(self, **fields) -> WebsiteConfig:
        with self._session('create_website_config') as session:
            config = WebsiteConfig(**fields)
            session.add(config)
            session.commit()
            return config

    def active_report_tenants(self) -> List[str]:
        """Tenants with at least one active, report-enabled website config."""
        with self._session('active_report_tenants') as session:
            rows = session.query(WebsiteConfig.tenant_id).filter(
                WebsiteConfig.status == 'active',
                WebsiteConfig.daily_report_enabled.is_(True),
            ).distinct().order_by(WebsiteConfig.tenant_id).all()
            return [row.tenant_id for row in rows]

    def website_configs_for(self, tenant_id: str) -> List[WebsiteConfig]:
        with self._session('website_configs_for') as session:
            return session.query(WebsiteConfig).filter_by(
                tenant_id=tenant_id,
            ).order_by(WebsiteConfig.id).all()

    # ── Leads ─────────────────────────────────────────────────────────

    def insert_lead(self, lead: Lead, audit_reason: str = 'Initial submission') -> Lead:
        """
        INSERT a lead plus its initial status-change row in one transaction.

        Raises DuplicateLeadError when the composite identity already exists.
        """
        key = lead.composite_key
        with self._session('insert_lead') as session:
            session.add(lead)
            try:
                session.flush()
            except IntegrityError as e:
                session.rollback()
                raise DuplicateLeadError(key) from e
            session.add(LeadStatusChange(
                lead_id=lead.id,
                field_changed='status',
                old_value=None,
                new_value=lead.status,
                changed_by=None,
                change_reason=audit_reason,
            ))
            session.commit()
            return lead

    def find_by_composite_key(self, website_config_id, form_id, entry_id) -> Optional[Lead]:
        with self._session('find_by_composite_key') as session:
            return session.query(Lead).filter_by(
                website_config_id=website_config_id,
                form_id=str(form_id),
                entry_id=str(entry_id),
            ).first()

    def get_lead(self, lead_id: int) -> Optional[Lead]:
        with self._session('get_lead') as session:
            return session.get(Lead, lead_id)

    def count_recent_submissions(self, tenant_id, window_minutes, ip_address=None, email=None, now=None) -> int:
        """Leads stored for the tenant in the last N minutes from this IP or email."""
        identity = []
        if ip_address:
            identity.append(Lead.ip_address == ip_address)
        if email:
            identity.append(func.lower(Lead.email) == email.lower())

        since = (now or datetime.now(timezone.utc)) - timedelta(minutes=window_minutes)
        with self._session('count_recent_submissions') as session:
            query = session.query(func.count(Lead.id)).filter(
                Lead.tenant_id == tenant_id,
                Lead.created_at >= since,
            )
            if identity:
                query = query.filter(or_(*identity))
            return query.scalar() or 0

    def spam_rules_for(self, tenant_id) -> List[SpamRule]:
        """Enabled global rules plus the tenant's own."""
        with self._session('spam_rules_for') as session:
            return session.query(SpamRule).filter(
                SpamRule.enabled.is_(True),
                or_(SpamRule.tenant_id.is_(None), SpamRule.tenant_id == tenant_id),
            ).order_by(SpamRule.id).all()

    def leads_for_day(self, tenant_id, day: date) -> List[Lead]:
        start, end = day_bounds(day)
        with self._session('leads_for_day') as session:
            return session.query(Lead).filter(
                Lead.tenant_id == tenant_id,
                Lead.submitted_at >= start,
                Lead.submitted_at < end,
            ).order_by(Lead.submitted_at).all()

    def trailing_total(self, tenant_id, day: date, days: int = 7) -> int:
        """Leads in the `days` full days before `day` (the day itself excluded)."""
        end, _ = day_bounds(day)
        start = end - timedelta(days=days)
        with self._session('trailing_total') as session:
            return session.query(func.count(Lead.id)).filter(
                Lead.tenant_id == tenant_id,
                Lead.submitted_at >= start,
                Lead.submitted_at < end,
            ).scalar() or 0

    def trailing_daily_average(self, tenant_id, day: date, days: int = 7) -> float:
        return self.trailing_total(tenant_id, day, days) / days

    # ── Status + audit trail ──────────────────────────────────────────

    def record_status_change(self, lead_id, field, old, new, actor=None, reason=None) -> LeadStatusChange:
        with self._session('record_status_change') as session:
            change = LeadStatusChange(
                lead_id=lead_id,
                field_changed=field,
                old_value=old,
                new_value=new,
                changed_by=actor,
                change_reason=reason,
            )
            session.add(change)
            session.commit()
            return change

    def update_status(self, lead_id, new_status, actor=None, reason=None) -> Optional[Lead]:
        """
        Move a lead to a new lifecycle status, auditing the transition.

        Returns the lead (None if it does not exist). Same-status updates are
        a no-op and write no audit row.
        """
        if new_status not in LEAD_STATUSES:
            raise ValidationError(f'Unknown lead status: {new_status}')

        with self._session('update_status') as session:
            lead = session.get(Lead, lead_id)
            if lead is None:
                return None
            old_status = lead.status
            if old_status == new_status:
                return lead
            lead.status = new_status
            session.add(LeadStatusChange(
                lead_id=lead.id,
                field_changed='status',
                old_value=old_status,
                new_value=new_status,
                changed_by=actor,
                change_reason=reason,
            ))
            session.commit()
            logger.info("Lead %s status %s → %s (by %s)", lead_id, old_status, new_status, actor or 'system')
            return lead

    def update_notes(self, lead_id, notes) -> Optional[Lead]:
        with self._session('update_notes') as session:
            lead = session.get(Lead, lead_id)
            if lead is None:
                return None
            lead.notes = notes
            session.commit()
            return lead

    def status_history(self, lead_id) -> List[LeadStatusChange]:
        with self._session('status_history') as session:
            return session.query(LeadStatusChange).filter_by(
                lead_id=lead_id,
            ).order_by(LeadStatusChange.id).all()

    # ── Daily reports ─────────────────────────────────────────────────

    def save_daily_report(self, tenant_id, report_date: date, stats: dict, exceptions: list,
                          summary: str, report_html: str = None, sent_to: list = None) -> DailyLeadReport:
        """Upsert the (tenant, date) report row; a re-run replaces the earlier one."""
        with self._session('save_daily_report') as session:
            report = session.query(DailyLeadReport).filter_by(
                tenant_id=tenant_id,
                report_date=report_date,
            ).first()
            if report is None:
                report = DailyLeadReport(tenant_id=tenant_id, report_date=report_date)
                session.add(report)

            report.total_leads = stats.get('total', 0)
            report.high_quality_leads = stats.get('high', 0)
            report.medium_quality_leads = stats.get('medium', 0)
            report.low_quality_leads = stats.get('low', 0)
            report.spam_leads = stats.get('spam', 0)
            report.duplicate_leads = stats.get('duplicate', 0)
            report.exceptions = exceptions
            report.exception_count = len(exceptions)
            report.summary = summary
            report.report_html = report_html
            report.sent_to = sent_to or []
            report.delivery_status = 'pending'
            report.delivery_error = None
            report.sent_at = None
            session.commit()
            return report

    def mark_report_delivery(self, report_id, delivered: bool, error: str = None):
        with self._session('mark_report_delivery') as session:
            report = session.get(DailyLeadReport, report_id)
            if report is None:
                return
            report.delivery_status = 'sent' if delivered else 'failed'
            report.delivery_error = error
            if delivered:
                report.sent_at = datetime.now(timezone.utc)
            session.commit()
