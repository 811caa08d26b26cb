"""
Cart Module - Models
=====================
Guest cart persistence: one JSON document per session key.
"""

from sqlalchemy import Column, String, Text, DateTime
from sqlalchemy.sql import func
from config.database import Base


class CartSession(Base):
    __tablename__ = "cart_sessions"

    # "<cookie>" for the cart, "<cookie>:selection" for the selection tray
    session_key = Column(String(100), primary_key=True)
    data = Column(Text, nullable=False, default="{}")
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    def __repr__(self):
        return f"<CartSession {self.session_key}>"
