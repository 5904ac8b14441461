"""
Notifications — Slack webhook delivery of daily lead reports.

Notification failure never fails the report job; the outcome is returned so
the caller can record delivery status on the report row.
"""
import logging
import requests

from leadflow.config import SLACK_WEBHOOK_URL, APP_URL

logger = logging.getLogger('services.notifications')

SEVERITY_EMOJI = {
    'error': ':red_circle:',
    'warning': ':large_orange_circle:',
}


def build_report_blocks(report: dict) -> list:
    """Slack Block Kit payload for one tenant-day report."""
    stats = report['stats']
    blocks = [
        {
            "type": "header",
            "text": {
                "type": "plain_text",
                "text": f"Daily Lead Report — {report['date']}",
            }
        },
        {
            "type": "section",
            "fields": [
                {"type": "mrkdwn", "text": f"*Tenant:* {report['tenant_id']}"},
                {"type": "mrkdwn", "text": f"*Total:* {stats['total']}"},
                {"type": "mrkdwn", "text": f"*High:* {stats['high']}"},
                {"type": "mrkdwn", "text": f"*Medium:* {stats['medium']}"},
                {"type": "mrkdwn", "text": f"*Low:* {stats['low']}"},
                {"type": "mrkdwn", "text": f"*Spam:* {stats['spam']}"},
            ]
        },
        {
            "type": "section",
            "text": {"type": "mrkdwn", "text": f"_{report['summary']}_"}
        },
    ]

    for exc in report.get('exceptions', []):
        emoji = SEVERITY_EMOJI.get(exc['severity'], '')
        blocks.append({
            "type": "section",
            "text": {"type": "mrkdwn", "text": f"{emoji} *{exc['type']}* — {exc['details']}"}
        })

    websites = report.get('websites') or []
    if websites:
        lines = [f"{w['name']}: {w['leads']} leads ({w['high_quality']} high)" for w in websites]
        blocks.append({
            "type": "context",
            "elements": [{"type": "mrkdwn", "text": ' · '.join(lines)}]
        })

    blocks.append({
        "type": "context",
        "elements": [{"type": "mrkdwn", "text": f"<{APP_URL}/leads|Open leads dashboard>"}]
    })
    return blocks


def notify_daily_report(report: dict):
    """
    Post a daily report to Slack.

    Returns (delivered, error). Never raises.
    """
    if not SLACK_WEBHOOK_URL:
        return False, 'SLACK_WEBHOOK_URL not configured'

    try:
        response = requests.post(SLACK_WEBHOOK_URL, json={"blocks": build_report_blocks(report)}, timeout=10)
        response.raise_for_status()
        logger.info("Daily report for %s (%s) sent", report['tenant_id'], report['date'])
        return True, None

    except Exception as e:
        logger.error("Failed to send daily report for %s (%s)", report['tenant_id'], report['date'], exc_info=True)
        return False, str(e)[:500]
