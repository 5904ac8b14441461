"""
Lead routes — read a lead, move it through its lifecycle.

Bearer ADMIN_API_TOKEN; open when unset (local dev).
"""
import hmac
import logging
from flask import Blueprint, request, jsonify

from leadflow import config
from leadflow.errors import LeadflowError
from leadflow.services.store import LeadStore

logger = logging.getLogger('routes.leads')

bp = Blueprint('leads', __name__)


def bearer_token():
    header = request.headers.get('Authorization', '')
    if header.startswith('Bearer '):
        return header[len('Bearer '):].strip()
    return None


def _unauthorized():
    token = config.ADMIN_API_TOKEN
    if not token:
        return None  # No token set — open access (local dev)
    supplied = bearer_token() or ''
    if hmac.compare_digest(supplied.encode(), token.encode()):
        return None
    return jsonify({'success': False, 'error': 'Unauthorized'}), 401


@bp.route('/api/leads/<int:lead_id>')
def get_lead(lead_id):
    denied = _unauthorized()
    if denied:
        return denied

    store = LeadStore()
    try:
        lead = store.get_lead(lead_id)
        if lead is None:
            return jsonify({'success': False, 'error': 'Lead not found'}), 404
        history = store.status_history(lead_id)
    except LeadflowError as e:
        return jsonify(e.to_dict()), e.status_code

    data = lead.to_dict()
    data['statusHistory'] = [change.to_dict() for change in history]
    return jsonify({'success': True, 'lead': data}), 200


@bp.route('/api/leads/<int:lead_id>', methods=['PATCH'])
def update_lead(lead_id):
    """Body: {status?, notes?, changedBy?, reason?}"""
    denied = _unauthorized()
    if denied:
        return denied

    data = request.get_json(silent=True)
    if not isinstance(data, dict) or not ('status' in data or 'notes' in data):
        return jsonify({'success': False, 'error': 'Nothing to update (status or notes required)'}), 400

    store = LeadStore()
    try:
        lead = store.get_lead(lead_id)
        if lead is None:
            return jsonify({'success': False, 'error': 'Lead not found'}), 404
        if 'status' in data:
            lead = store.update_status(
                lead_id, data['status'],
                actor=data.get('changedBy'),
                reason=data.get('reason'),
            )
        if 'notes' in data:
            lead = store.update_notes(lead_id, data['notes'])
    except LeadflowError as e:
        return jsonify(e.to_dict()), e.status_code

    return jsonify({'success': True, 'lead': lead.to_dict()}), 200
