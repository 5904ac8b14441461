"""
LeadStatusChange model — append-only audit trail of lead field transitions.
"""
from sqlalchemy import Column, Integer, Text, DateTime, ForeignKey
from sqlalchemy.sql import func

from leadflow.database import Base


class LeadStatusChange(Base):
    __tablename__ = 'lead_status_changes'

    id = Column(Integer, primary_key=True, autoincrement=True)
    lead_id = Column(Integer, ForeignKey('leads.id'), nullable=False, index=True)
    field_changed = Column(Text, nullable=False, default='status')
    old_value = Column(Text, nullable=True)
    new_value = Column(Text, nullable=False)
    changed_by = Column(Text, nullable=True)   # NULL = system
    change_reason = Column(Text, nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    def to_dict(self):
        return {
            'id': self.id,
            'leadId': self.lead_id,
            'field': self.field_changed,
            'oldValue': self.old_value,
            'newValue': self.new_value,
            'changedBy': self.changed_by,
            'reason': self.change_reason,
            'createdAt': self.created_at.isoformat() if self.created_at else None,
        }
