"""
Report routes — cron trigger for the daily lead reports.
"""
import hmac
import logging
from datetime import date
from flask import Blueprint, request, jsonify
from redis.exceptions import RedisError

from leadflow import config
from leadflow.errors import LeadflowError
from leadflow.pipeline.reports import default_report_date, launch_daily_reports
from leadflow.routes.leads import bearer_token

logger = logging.getLogger('routes.reports')

bp = Blueprint('reports', __name__)


@bp.route('/api/cron/daily-lead-reports', methods=['POST'])
def trigger_daily_reports():
    """Enqueue one report job per active tenant. Body (optional): {"date": "YYYY-MM-DD"}"""
    secret = config.CRON_SECRET
    if not secret:
        logger.error("CRON_SECRET not configured — refusing to run daily reports")
        return jsonify({'success': False, 'error': 'Cron secret not configured'}), 500

    supplied = bearer_token() or ''
    if not hmac.compare_digest(supplied.encode(), secret.encode()):
        return jsonify({'success': False, 'error': 'Unauthorized'}), 401

    data = request.get_json(silent=True) or {}
    report_date = default_report_date()
    if data.get('date'):
        try:
            report_date = date.fromisoformat(str(data['date']))
        except ValueError:
            return jsonify({'success': False, 'error': 'date must be YYYY-MM-DD'}), 400

    try:
        tenants = launch_daily_reports(report_date)
    except LeadflowError as e:
        return jsonify(e.to_dict()), e.status_code
    except RedisError as e:
        logger.error("Could not enqueue daily reports: %s", e)
        return jsonify({'success': False, 'error': 'Report queue unavailable'}), 500

    return jsonify({
        'success': True,
        'date': report_date.isoformat(),
        'tenants': len(tenants),
        'enqueued': tenants,
    }), 202
