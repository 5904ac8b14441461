"""
Logging setup for the web process and the RQ report worker.

LOG_LEVEL picks the root level (INFO when unset or unknown). LOG_FORMAT=json
switches to one JSON object per line; anything else gives plain text.
Log calls may pass tenant/lead context through `extra=`; the JSON lines carry
it as top-level keys so aggregators can filter per tenant.
"""
import json
import logging
import os
import sys
from datetime import datetime, timezone

# Record attributes lifted into JSON lines when a call site sets them
CONTEXT_FIELDS = ('tenant_id', 'lead_id', 'composite_key', 'report_date')

_QUIET = ('urllib3', 'rq', 'rq.worker', 'redis', 'werkzeug')

TEXT_FORMAT = '[%(asctime)s] %(levelname)s %(name)s: %(message)s'


class JSONFormatter(logging.Formatter):

    def format(self, record):
        line = {
            'timestamp': datetime.fromtimestamp(record.created, tz=timezone.utc).isoformat(),
            'level': record.levelname,
            'logger': record.name,
            'message': record.getMessage(),
        }
        for field in CONTEXT_FIELDS:
            value = getattr(record, field, None)
            if value is not None:
                line[field] = value if isinstance(value, (int, float)) else str(value)
        if record.exc_info and record.exc_info[0] is not None:
            line['exception'] = self.formatException(record.exc_info)
        return json.dumps(line)


def _level_from_env():
    level = logging.getLevelName(os.getenv('LOG_LEVEL', 'INFO').upper())
    return level if isinstance(level, int) else logging.INFO


def configure_logging(app=None):
    """Install a single stderr handler on the root logger (idempotent)."""
    level = _level_from_env()

    handler = logging.StreamHandler(sys.stderr)
    handler.setLevel(level)
    if os.getenv('LOG_FORMAT', 'text').lower() == 'json':
        handler.setFormatter(JSONFormatter())
    else:
        handler.setFormatter(logging.Formatter(TEXT_FORMAT, datefmt='%Y-%m-%d %H:%M:%S'))

    root = logging.getLogger()
    root.handlers = [handler]
    root.setLevel(level)

    for name in _QUIET:
        logging.getLogger(name).setLevel(logging.WARNING)

    if app is not None:
        app.logger.debug("Logging configured at %s", logging.getLevelName(level))
