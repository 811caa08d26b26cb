"""
Cart Module - Service Layer
==============================
Wires CartController / Selection to the cart_sessions table and resolves
catalog products for bundle operations.
"""

import json
import logging
from typing import Any, Dict, List, Optional

from sqlalchemy.orm import Session

from common.exceptions import NotFoundError, ValidationError
from config.settings import FREE_UNIT_POLICY
from modules.cart.models import CartSession
from modules.cart.state import CartController, CartStore, poster_size_known
from modules.cart.selection import Selection
from modules.cart.deals import MIN_ORDER_QUANTITY
from modules.catalog.options import FrameOption, find_frame
from modules.pricing.calculator import FreeUnitPolicy

logger = logging.getLogger("evo.cart")


class SqlCartStore(CartStore):
    """CartStore over cart_sessions. Flushes only; the request commits."""

    def __init__(self, db: Session):
        self.db = db

    def load(self, key: str) -> Optional[Dict[str, Any]]:
        row = self.db.query(CartSession).filter(CartSession.session_key == key).first()
        if not row:
            return None
        try:
            return json.loads(row.data or "{}")
        except json.JSONDecodeError:
            logger.warning(f"Corrupt cart payload for session {key}")
            return None

    def save(self, key: str, data: Dict[str, Any]) -> None:
        row = self.db.query(CartSession).filter(CartSession.session_key == key).first()
        payload = json.dumps(data)
        if row:
            row.data = payload
        else:
            self.db.add(CartSession(session_key=key, data=payload))
        self.db.flush()


class CartService:

    def get_cart(self, db: Session, session_key: str) -> CartController:
        return CartController(
            SqlCartStore(db), session_key, policy=FreeUnitPolicy.parse(FREE_UNIT_POLICY),
        )

    def get_selection(self, db: Session, session_key: str) -> Selection:
        return Selection(SqlCartStore(db), session_key)

    def resolve_options(self, poster_size: str, frame_finish: Optional[str] = None) -> Optional[FrameOption]:
        """Validate size/finish input and return the frame (or None)."""
        if not poster_size_known(poster_size):
            raise ValidationError(f"Unknown poster size: {poster_size}")
        if not frame_finish:
            return None
        frame = find_frame(poster_size, frame_finish)
        if not frame:
            raise ValidationError(f"No {frame_finish} frame for {poster_size}")
        return frame

    def resolve_products(self, db: Session, product_ids: List) -> list:
        """Active catalog rows for ids, in the given order (duplicates allowed)."""
        from modules.catalog.service import product_service
        products = product_service.get_many(db, product_ids, active_only=True)
        if len(products) != len(product_ids):
            raise NotFoundError("One or more products were not found")
        return products

    def commit_selection(
        self, db: Session, session_key: str, poster_size: str, frame_finish: Optional[str] = None,
    ):
        """Turn the selection tray into a cart bundle and empty the tray."""
        selection = self.get_selection(db, session_key)
        if selection.count < MIN_ORDER_QUANTITY:
            raise ValidationError(f"Please select at least {MIN_ORDER_QUANTITY} items to create a bundle.")
        frame = self.resolve_options(poster_size, frame_finish)
        bundle = self.get_cart(db, session_key).add_bundle(selection.items, poster_size, frame)
        selection.clear()
        return bundle


# Singleton
cart_service = CartService()
