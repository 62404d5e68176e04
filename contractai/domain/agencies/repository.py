"""Agency repository - Database operations for agency profiles"""

from datetime import datetime
from typing import Optional

from sqlalchemy.orm import Session

from ...models import Agency


class AgencyRepository:
    """Repository for agency database operations"""

    @staticmethod
    def update_agency(db: Session, agency: Agency, clear: tuple = (), **updates) -> Agency:
        """Update an agency with the provided (non-None) fields; names in `clear` are set to None"""
        for key, value in updates.items():
            if value is not None and hasattr(agency, key):
                setattr(agency, key, value)
        for key in clear:
            setattr(agency, key, None)
        agency.updated_at = datetime.utcnow()
        db.commit()
        db.refresh(agency)
        return agency

    @staticmethod
    def set_logo(db: Session, agency: Agency, logo_ref: Optional[str]) -> Agency:
        """Store the logo reference (R2 key, URL or data URL)"""
        agency.logo_url = logo_ref
        agency.updated_at = datetime.utcnow()
        db.commit()
        db.refresh(agency)
        return agency
