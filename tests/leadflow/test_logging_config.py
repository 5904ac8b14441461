"""Tests for leadflow.logging_config."""
import json
import logging
import os
import sys
from unittest.mock import patch

import pytest

from leadflow.logging_config import configure_logging, JSONFormatter


@pytest.fixture(autouse=True)
def _restore_root_logger():
    root = logging.getLogger()
    level, handlers = root.level, root.handlers[:]
    yield
    root.setLevel(level)
    root.handlers = handlers


class TestConfigureLogging:

    @pytest.mark.parametrize('env_level,expected', [
        ('DEBUG', logging.DEBUG),
        ('warning', logging.WARNING),
        ('NOT_A_LEVEL', logging.INFO),
    ])
    def test_level_from_env(self, env_level, expected):
        with patch.dict(os.environ, {'LOG_LEVEL': env_level}):
            configure_logging()
        assert logging.getLogger().level == expected

    def test_defaults_to_info(self):
        with patch.dict(os.environ, {}, clear=False):
            os.environ.pop('LOG_LEVEL', None)
            configure_logging()
        assert logging.getLogger().level == logging.INFO

    def test_json_lines(self, capsys):
        with patch.dict(os.environ, {'LOG_FORMAT': 'json'}):
            configure_logging()
        logging.getLogger('pipeline.manager').info("Lead %s stored", 42)
        parsed = json.loads(capsys.readouterr().err.strip())
        assert parsed['logger'] == 'pipeline.manager'
        assert parsed['message'] == 'Lead 42 stored'
        assert parsed['level'] == 'INFO'

    def test_text_format(self, capsys):
        with patch.dict(os.environ, {'LOG_FORMAT': 'text'}):
            configure_logging()
        logging.getLogger('routes.webhook').warning("rejected")
        err = capsys.readouterr().err
        assert 'routes.webhook' in err
        assert 'WARNING' in err

    def test_queue_and_http_loggers_quieted(self):
        configure_logging()
        for name in ['urllib3', 'rq.worker', 'redis', 'werkzeug']:
            assert logging.getLogger(name).level == logging.WARNING

    def test_reconfigure_keeps_single_handler(self):
        configure_logging()
        configure_logging()
        assert len(logging.getLogger().handlers) == 1


class TestJSONFormatter:

    def test_exception_is_included(self):
        try:
            raise RuntimeError('store down')
        except RuntimeError:
            record = logging.LogRecord(
                name='services.store', level=logging.ERROR, pathname='', lineno=0,
                msg='failed', args=(), exc_info=sys.exc_info(),
            )
        parsed = json.loads(JSONFormatter().format(record))
        assert 'RuntimeError: store down' in parsed['exception']

    def test_context_fields_from_extra(self):
        record = logging.LogRecord(
            name='pipeline.manager', level=logging.INFO, pathname='', lineno=0,
            msg='Lead accepted', args=(), exc_info=None,
        )
        record.tenant_id = 'hotel-1'
        record.lead_id = 42
        parsed = json.loads(JSONFormatter().format(record))
        assert parsed['tenant_id'] == 'hotel-1'
        assert parsed['lead_id'] == 42
        assert 'report_date' not in parsed
