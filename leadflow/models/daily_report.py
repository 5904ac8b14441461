"""
DailyLeadReport model — one row per tenant per reported day.
"""
from sqlalchemy import Column, Integer, Text, Date, DateTime, JSON, UniqueConstraint
from sqlalchemy.sql import func

from leadflow.database import Base


class DailyLeadReport(Base):
    __tablename__ = 'daily_lead_reports'

    id = Column(Integer, primary_key=True, autoincrement=True)
    tenant_id = Column(Text, nullable=False)
    report_date = Column(Date, nullable=False)

    total_leads = Column(Integer, default=0)
    high_quality_leads = Column(Integer, default=0)
    medium_quality_leads = Column(Integer, default=0)
    low_quality_leads = Column(Integer, default=0)
    spam_leads = Column(Integer, default=0)
    duplicate_leads = Column(Integer, default=0)

    exceptions = Column(JSON, default=list)
    exception_count = Column(Integer, default=0)
    summary = Column(Text, nullable=True)
    report_html = Column(Text, nullable=True)

    sent_to = Column(JSON, default=list)
    delivery_status = Column(Text, default='pending')   # pending/sent/failed
    delivery_error = Column(Text, nullable=True)
    sent_at = Column(DateTime(timezone=True), nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    __table_args__ = (
        UniqueConstraint('tenant_id', 'report_date', name='uq_daily_report_tenant_date'),
    )
