"""
Admin Module - Homepage Content Service
==========================================
Hero banner, mega-deal cards and reels, stored as JSON per key.
"""

import json
import logging
from typing import Any, Dict, List

from sqlalchemy.orm import Session

from common.exceptions import ValidationError
from modules.admin.models import HomepageSetting

logger = logging.getLogger("evo.admin")

HERO = "hero"
MEGA_DEALS = "mega_deals"
REELS = "reels"

DEFAULT_HERO = {
    "headline": "Art That Defines You",
    "subheadline": (
        "From iconic movie scenes to breathtaking landscapes, find the perfect "
        "high-quality posters and frames to express your style."
    ),
    "video_url": None,
}

DEFAULTS = {
    HERO: DEFAULT_HERO,
    MEGA_DEALS: [],
    REELS: [],
}


class HomepageService:

    def get(self, db: Session, key: str) -> Any:
        row = db.query(HomepageSetting).filter(HomepageSetting.key == key).first()
        if row is None or row.data is None:
            return DEFAULTS.get(key)
        return row.data

    def _set(self, db: Session, key: str, value: Any) -> Any:
        row = db.query(HomepageSetting).filter(HomepageSetting.key == key).first()
        payload = json.dumps(value)
        if row:
            row.value = payload
        else:
            db.add(HomepageSetting(key=key, value=payload))
        db.flush()
        logger.info(f"Homepage setting '{key}' updated")
        return value

    def set_hero(self, db: Session, data: dict) -> dict:
        headline = (data.get("headline") or "").strip()
        if not headline:
            raise ValidationError("Headline is required")
        return self._set(db, HERO, {
            "headline": headline,
            "subheadline": (data.get("subheadline") or "").strip(),
            "video_url": data.get("video_url") or None,
        })

    def set_mega_deals(self, db: Session, deals: List[dict]) -> List[dict]:
        cleaned = []
        for deal in deals or []:
            try:
                buy, get = int(deal["buy"]), int(deal["get"])
            except (KeyError, TypeError, ValueError):
                raise ValidationError("Each deal needs numeric buy and get values")
            if buy <= 0 or get < 0:
                raise ValidationError("Deal quantities must be positive")
            cleaned.append({
                "buy": buy,
                "get": get,
                "total": int(deal.get("total") or buy + get),
                "active": bool(deal.get("active", True)),
            })
        return self._set(db, MEGA_DEALS, cleaned)

    def set_reels(self, db: Session, urls: List[str]) -> List[str]:
        return self._set(db, REELS, [u.strip() for u in (urls or []) if u and u.strip()])

    def get_payload(self, db: Session) -> Dict[str, Any]:
        """Everything the storefront homepage renders."""
        from modules.catalog.service import product_service, category_service, curated_bundle_service

        return {
            "hero": self.get(db, HERO),
            "mega_deals": [d for d in self.get(db, MEGA_DEALS) if d.get("active", True)],
            "reels": self.get(db, REELS),
            "trending": [p.to_dict() for p in product_service.list_trending(db)],
            "categories": [c.to_dict() for c in category_service.list_all(db)],
            "curated_bundles": [b.to_dict() for b in curated_bundle_service.list_all(db)],
        }


# Singleton
homepage_service = HomepageService()
