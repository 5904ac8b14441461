"""
RQ worker entry point — runs the per-tenant daily report jobs.

    python worker.py
"""
from rq import Worker

from leadflow.extensions import redis_client
from leadflow.logging_config import configure_logging

if __name__ == '__main__':
    configure_logging()
    Worker(['default'], connection=redis_client).work()
