"""
Admin Module - Models
======================
HomepageSetting: key -> JSON value for storefront homepage content.
"""

import json

from sqlalchemy import Column, String, Text, DateTime
from sqlalchemy.sql import func
from config.database import Base


class HomepageSetting(Base):
    __tablename__ = "homepage_settings"

    key = Column(String(50), primary_key=True)     # hero | mega_deals | reels
    value = Column(Text, nullable=False)            # JSON
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    @property
    def data(self):
        try:
            return json.loads(self.value)
        except (json.JSONDecodeError, TypeError):
            return None

    def __repr__(self):
        return f"<HomepageSetting {self.key}>"
