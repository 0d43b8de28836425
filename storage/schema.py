from sqlalchemy import Column, Integer, String, DateTime, JSON, Index
from sqlalchemy.orm import declarative_base

from common.util import utcnow, isoformat_utc

# Create the base class for all models
Base = declarative_base()

# Create metadata instance
metadata = Base.metadata


class StoredReport(Base):
    """Stored report table - one generated readiness report per row, never updated in place"""
    __tablename__ = 'stored_report'

    id = Column(Integer, primary_key=True, autoincrement=True)
    report_id = Column(String(64), nullable=False, unique=True)
    created_at = Column(DateTime(timezone=True), nullable=False, default=utcnow)

    # Company metadata
    company_name = Column(String(255), nullable=False)
    company_site = Column(String(255), nullable=True)
    tenant = Column(String(255), nullable=True)

    # Summary counts and the full report body
    summary = Column(JSON, nullable=False)
    payload = Column(JSON, nullable=False)

    __table_args__ = (
        Index('idx_stored_report_created_at', 'created_at'),
        Index('idx_stored_report_company', 'company_name'),
    )

    def to_dict(self):
        """Report-history entry as returned by the API"""
        return {
            'id': self.report_id,
            'timestamp': isoformat_utc(self.created_at) if self.created_at else None,
            'companyInfo': {
                'name': self.company_name,
                'site': self.company_site or '',
                'tenant': self.tenant or '',
            },
            'summary': self.summary or {},
            'results': self.payload or {},
        }
