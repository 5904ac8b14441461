"""
Webhook routes — inbound form submissions + health probes.
"""
import logging
from flask import Blueprint, request, jsonify

from leadflow.errors import DependencyError
from leadflow.pipeline.base import Accepted, Duplicate
from leadflow.pipeline.manager import ingest_submission
from leadflow.services.store import LeadStore

logger = logging.getLogger('routes.webhook')

bp = Blueprint('webhook', __name__)

WEBHOOK_PATH = '/api/integrations/forms/webhook'


@bp.route('/health')
def health_check():
    """Health check endpoint."""
    return jsonify({"status": "healthy"}), 200


@bp.route(WEBHOOK_PATH, methods=['GET'])
def webhook_probe():
    """Form vendors ping the endpoint before saving the webhook."""
    return jsonify({
        'status': 'ok',
        'message': 'Form webhook endpoint is active',
    }), 200


@bp.route(WEBHOOK_PATH, methods=['POST'])
def receive_submission():
    """
    Ingest one form submission.

    201 new lead · 200 redelivery · 409 lost insert race · 400/401 rejected ·
    500 store unavailable (vendor retries; redelivery is deduplicated).
    """
    try:
        result = ingest_submission(
            request.get_data(),
            request.headers.get('X-API-Key'),
            request.headers.get('X-Webhook-Signature'),
            LeadStore(),
        )
    except DependencyError as e:
        logger.error("Webhook failed, store unavailable: %s", e.message)
        return jsonify(e.to_dict()), e.status_code

    if isinstance(result, Accepted):
        return jsonify(result.to_dict()), 201
    if isinstance(result, Duplicate):
        return jsonify(result.to_dict()), 409 if result.raced else 200
    return jsonify(result.to_dict()), result.error.status_code
