"""
WebsiteConfig model — one row per customer site integration (the tenant config).

Several sites can belong to one tenant (tenant_id); leads are deduplicated
per site and reported per tenant.
"""
from sqlalchemy import Column, Integer, Text, Boolean, DateTime, JSON
from sqlalchemy.sql import func

from leadflow.database import Base


class WebsiteConfig(Base):
    __tablename__ = 'website_configs'

    id = Column(Integer, primary_key=True, autoincrement=True)
    tenant_id = Column(Text, nullable=False, index=True)
    website_name = Column(Text, nullable=False)
    website_url = Column(Text, default='')
    api_key = Column(Text, nullable=False, unique=True)   # bba_ + 32 hex chars
    webhook_secret = Column(Text, nullable=True)          # NULL = signature check disabled
    status = Column(Text, nullable=False, default='active')
    daily_report_enabled = Column(Boolean, default=True)
    daily_report_emails = Column(JSON, default=list)
    last_sync_at = Column(DateTime(timezone=True), nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    @property
    def is_active(self):
        return self.status == 'active'
