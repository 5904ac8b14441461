"""
SpamRule model — operator-managed spam rules, global (tenant_id NULL) or per tenant.
"""
from sqlalchemy import Column, Integer, Float, Text, Boolean, DateTime
from sqlalchemy.sql import func

from leadflow.database import Base


class SpamRule(Base):
    __tablename__ = 'spam_rules'

    id = Column(Integer, primary_key=True, autoincrement=True)
    tenant_id = Column(Text, nullable=True, index=True)
    rule_name = Column(Text, nullable=False)
    rule_type = Column(Text, nullable=False)     # email_domain/keyword/length/pattern/ip
    rule_value = Column(Text, nullable=False)
    score_increment = Column(Float, default=0.2)
    is_blocking = Column(Boolean, default=False)
    enabled = Column(Boolean, default=True)
    description = Column(Text, nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
