"""
Daily lead reports — one batch job per tenant per day.

  launch_daily_reports()  → enqueue generate_daily_report per active tenant (RQ)
  generate_daily_report() → stats + exceptions + website breakdown → HTML,
                            DailyLeadReport row, Slack delivery

Tenants share nothing mutable, so jobs run in parallel on any number of
workers. Re-running a tenant-day replaces its earlier report.
"""
import logging
from datetime import date, datetime, timedelta, timezone
from typing import List, Optional

from jinja2 import Environment

from leadflow.config import APP_URL
from leadflow.pipeline.anomalies import DayStats, ExceptionAnalyzer, summarize
from leadflow.pipeline.scoring_config import get_scoring_config
from leadflow.services.notifications import notify_daily_report
from leadflow.services.store import LeadStore

logger = logging.getLogger('pipeline.reports')


# ── Lazy RQ queue (avoids import-time Redis connection in tests) ─────────────

_queue = None

def _get_queue():
    global _queue
    if _queue is None:
        from leadflow.extensions import redis_client
        from rq import Queue
        _queue = Queue(connection=redis_client)
    return _queue


REPORT_TEMPLATE = '''
<!DOCTYPE html>
<html lang="en">
<head>
    <meta charset="UTF-8">
    <title>Daily Lead Report — {{ date }}</title>
    <style>
        body { font-family: Arial, sans-serif; color: #333; max-width: 640px; margin: 0 auto; }
        .stats td { padding: 8px 16px; text-align: center; }
        .exception { border-left: 4px solid #f59e0b; padding: 8px 12px; margin: 8px 0; background: #fffbeb; }
        .exception.error { border-color: #dc2626; background: #fef2f2; }
        table.websites { border-collapse: collapse; width: 100%; }
        table.websites th, table.websites td { border-bottom: 1px solid #eee; padding: 6px; text-align: left; }
    </style>
</head>
<body>
    <h1>Daily Lead Report</h1>
    <p>{{ date }}</p>

    <table class="stats">
        <tr>
            <td><strong>{{ stats.total }}</strong><br>Total</td>
            <td><strong>{{ stats.high }}</strong><br>High</td>
            <td><strong>{{ stats.medium }}</strong><br>Medium</td>
            <td><strong>{{ stats.low }}</strong><br>Low</td>
            <td><strong>{{ stats.spam }}</strong><br>Spam</td>
        </tr>
    </table>

    <h2>{{ summary }}</h2>
    {% for exc in exceptions %}
    <div class="exception {{ exc.severity }}">
        <strong>{{ exc.type }}</strong> ({{ exc.count }})<br>{{ exc.details }}
    </div>
    {% endfor %}

    {% if websites %}
    <h2>By website</h2>
    <table class="websites">
        <tr><th>Website</th><th>Leads</th><th>High quality</th></tr>
        {% for w in websites %}
        <tr><td><a href="{{ w.url }}">{{ w.name }}</a></td><td>{{ w.leads }}</td><td>{{ w.high_quality }}</td></tr>
        {% endfor %}
    </table>
    {% endif %}

    <p><a href="{{ app_url }}/leads">View all leads</a></p>
</body>
</html>
'''

_jinja = Environment(autoescape=True)


def render_report_html(report: dict) -> str:
    return _jinja.from_string(REPORT_TEMPLATE).render(app_url=APP_URL, **report)


def default_report_date() -> date:
    """Yesterday, UTC."""
    return datetime.now(timezone.utc).date() - timedelta(days=1)


def _as_date(value) -> date:
    if isinstance(value, str):
        return date.fromisoformat(value)
    return value


# ── Public API ────────────────────────────────────────────────────────────────

def launch_daily_reports(report_date=None, store: LeadStore = None) -> List[str]:
    """Enqueue one report job per tenant with an active, report-enabled site."""
    report_date = _as_date(report_date) or default_report_date()
    store = store or LeadStore()

    tenants = store.active_report_tenants()
    queue = _get_queue()
    for tenant_id in tenants:
        queue.enqueue(generate_daily_report, tenant_id, report_date.isoformat(), job_timeout=600)

    logger.info("Enqueued %d daily report jobs for %s", len(tenants), report_date)
    return tenants


def website_breakdown(configs, leads) -> List[dict]:
    """Per-website lead and high-quality counts, in config order."""
    counts = {}
    for lead in leads:
        total, high = counts.get(lead.website_config_id, (0, 0))
        counts[lead.website_config_id] = (total + 1, high + (1 if lead.quality_tier == 'high' else 0))

    breakdown = []
    for cfg in configs:
        total, high = counts.get(cfg.id, (0, 0))
        breakdown.append({
            'name': cfg.website_name,
            'url': cfg.website_url,
            'leads': total,
            'high_quality': high,
        })
    return breakdown


def generate_daily_report(tenant_id: str, report_date=None, store: LeadStore = None) -> Optional[dict]:
    """
    Build, persist and deliver one tenant-day report.

    Returns the report payload, or None when the tenant had no leads that day.
    Store errors propagate (the RQ job fails and can be retried); Slack errors
    only mark the report as failed.
    """
    report_date = _as_date(report_date) or default_report_date()
    store = store or LeadStore()
    exception_config = get_scoring_config().exceptions

    leads = store.leads_for_day(tenant_id, report_date)
    if not leads:
        logger.info("No leads for %s on %s — skipping report", tenant_id, report_date)
        return None

    stats = DayStats.from_leads(leads)
    trailing = store.trailing_total(tenant_id, report_date, days=exception_config.baseline_days)
    exceptions = ExceptionAnalyzer(exception_config).analyze_stats(stats, trailing)

    configs = store.website_configs_for(tenant_id)
    recipients = []
    for cfg in configs:
        if cfg.daily_report_enabled:
            for email in cfg.daily_report_emails or []:
                if email not in recipients:
                    recipients.append(email)

    report = {
        'tenant_id': tenant_id,
        'date': report_date.isoformat(),
        'stats': stats.to_dict(),
        'exceptions': [e.to_dict() for e in exceptions],
        'summary': summarize(exceptions),
        'websites': website_breakdown(configs, leads),
    }
    html = render_report_html(report)

    row = store.save_daily_report(
        tenant_id, report_date,
        stats=report['stats'],
        exceptions=report['exceptions'],
        summary=report['summary'],
        report_html=html,
        sent_to=recipients,
    )
    report['report_id'] = row.id

    delivered, error = notify_daily_report(report)
    store.mark_report_delivery(row.id, delivered, error)
    report['delivery_status'] = 'sent' if delivered else 'failed'

    logger.info("Daily report %s for %s (%s): %d leads, %d exceptions, delivery=%s",
                row.id, tenant_id, report['date'], stats.total, len(exceptions), report['delivery_status'],
                extra={'tenant_id': tenant_id, 'report_date': report['date']})
    return report
