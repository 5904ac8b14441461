#!/usr/bin/env python3
"""
Register a customer website and print the credentials to paste into the
form plugin's webhook settings.

Usage:
    python scripts/create_website_config.py --tenant hotel-42 --name "Sea View" --url https://seaview.example
    python scripts/create_website_config.py --tenant hotel-42 --name "Sea View" --with-secret \
        --report-email ops@seaview.example

Requires: DATABASE_URL set (or defaults to sqlite:///local.db).
"""
import sys
import os
import argparse

sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from leadflow import create_app
from leadflow.config import WEBSITE_STATUSES
from leadflow.database import engine, Base
from leadflow.pipeline.signature import generate_api_key, generate_webhook_secret
from leadflow.services.store import LeadStore


def build_parser():
    parser = argparse.ArgumentParser(description='Create a website config with a fresh API key')
    parser.add_argument('--tenant', required=True, help='Tenant (customer) id that owns the site')
    parser.add_argument('--name', required=True, help='Website name shown in reports')
    parser.add_argument('--url', default='', help='Website URL')
    parser.add_argument('--status', default='active', choices=WEBSITE_STATUSES)
    parser.add_argument('--with-secret', action='store_true', help='Generate a webhook signing secret')
    parser.add_argument('--report-email', action='append', default=[], dest='report_emails',
                        help='Daily report recipient (repeatable)')
    parser.add_argument('--no-daily-report', action='store_true', help='Exclude the site from daily reports')
    return parser


def main(argv=None):
    args = build_parser().parse_args(argv)

    app = create_app()
    with app.app_context():
        # Ensure tables exist (for SQLite local dev)
        if engine.url.get_backend_name() == 'sqlite':
            Base.metadata.create_all(engine)

        config = LeadStore().create_website_config(
            tenant_id=args.tenant,
            website_name=args.name,
            website_url=args.url,
            api_key=generate_api_key(),
            webhook_secret=generate_webhook_secret() if args.with_secret else None,
            status=args.status,
            daily_report_enabled=not args.no_daily_report,
            daily_report_emails=args.report_emails,
        )

    print(f'Created website config {config.id} for tenant {config.tenant_id}')
    print(f'  X-API-Key:           {config.api_key}')
    if config.webhook_secret:
        print(f'  Webhook secret:      {config.webhook_secret}')
    print('  Endpoint:            POST /api/integrations/forms/webhook')
    return config


if __name__ == '__main__':
    main()
