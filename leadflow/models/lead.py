"""
Lead model — one row per accepted form submission, deduplicated by
(website_config_id, form_id, entry_id).
"""
from sqlalchemy import (
    Column, Integer, Float, Text, Boolean, DateTime, JSON, ForeignKey, UniqueConstraint,
)
from sqlalchemy.sql import func

from leadflow.database import Base


class Lead(Base):
    __tablename__ = 'leads'

    id = Column(Integer, primary_key=True, autoincrement=True)
    tenant_id = Column(Text, nullable=False, index=True)
    website_config_id = Column(Integer, ForeignKey('website_configs.id'), nullable=False)

    # Contact
    name = Column(Text, nullable=False, default='')
    email = Column(Text, nullable=True)
    phone = Column(Text, nullable=True)
    message = Column(Text, nullable=False, default='')

    # Booking details (dates kept as the strings the form sent)
    enquiry_date = Column(Text, nullable=True)
    booked_date = Column(Text, nullable=True)
    arrival_date = Column(Text, nullable=True)
    departure_date = Column(Text, nullable=True)
    adults = Column(Integer, default=0)
    children = Column(Integer, default=0)
    interested_in = Column(Text, nullable=True)
    nationality = Column(Text, nullable=True)
    lead_value = Column(Float, default=0.0)
    lead_source = Column(Text, default='form_submission')

    # Form tracking
    form_id = Column(Text, nullable=False)
    form_title = Column(Text, nullable=True)
    entry_id = Column(Text, nullable=False)
    submitted_at = Column(DateTime(timezone=True), nullable=False, index=True)

    # Source tracking
    source_url = Column(Text, nullable=True)
    utm_source = Column(Text, nullable=True)
    utm_medium = Column(Text, nullable=True)
    utm_campaign = Column(Text, nullable=True)
    referrer = Column(Text, nullable=True)
    ip_address = Column(Text, nullable=True)

    # Scoring
    quality_score = Column(Float, default=0.0)       # 0.0-1.0
    quality_tier = Column(Text, nullable=True)       # high/medium/low
    quality_reasons = Column(JSON, default=list)
    spam_score = Column(Float, default=0.0)          # 0.0-1.0
    spam_flags = Column(JSON, default=list)
    is_spam = Column(Boolean, default=False)
    is_duplicate = Column(Boolean, default=False)    # soft marker, not set by ingestion

    status = Column(Text, nullable=False, default='new')
    notes = Column(Text, nullable=True)
    webhook_payload = Column(JSON, nullable=True)

    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    __table_args__ = (
        UniqueConstraint('website_config_id', 'form_id', 'entry_id', name='uq_lead_composite_key'),
    )

    @property
    def composite_key(self):
        return f'{self.website_config_id}:{self.form_id}:{self.entry_id}'

    def to_dict(self):
        return {
            'id': self.id,
            'tenantId': self.tenant_id,
            'websiteConfigId': self.website_config_id,
            'name': self.name,
            'email': self.email,
            'phone': self.phone,
            'message': self.message,
            'enquiryDate': self.enquiry_date,
            'bookedDate': self.booked_date,
            'arrivalDate': self.arrival_date,
            'departureDate': self.departure_date,
            'adults': self.adults,
            'children': self.children,
            'interestedIn': self.interested_in,
            'nationality': self.nationality,
            'leadValue': self.lead_value,
            'leadSource': self.lead_source,
            'formId': self.form_id,
            'formTitle': self.form_title,
            'entryId': self.entry_id,
            'submittedAt': self.submitted_at.isoformat() if self.submitted_at else None,
            'sourceUrl': self.source_url,
            'utmSource': self.utm_source,
            'utmMedium': self.utm_medium,
            'utmCampaign': self.utm_campaign,
            'referrer': self.referrer,
            'ipAddress': self.ip_address,
            'quality': self.quality_tier,
            'qualityScore': self.quality_score,
            'qualityReasons': self.quality_reasons or [],
            'spamScore': self.spam_score,
            'spamFlags': self.spam_flags or [],
            'isSpam': bool(self.is_spam),
            'isDuplicate': bool(self.is_duplicate),
            'status': self.status,
            'notes': self.notes,
        }
