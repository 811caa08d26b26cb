"""
Admin Module - Homepage Routes
================================
Public homepage payload and studio editing of hero, deals, reels and trending.
"""

from typing import List, Optional

from fastapi import APIRouter, Depends
from pydantic import BaseModel, Field
from sqlalchemy.orm import Session

from config.database import get_db
from common.exceptions import EvoError, raise_http
from modules.admin.service import homepage_service, HERO, MEGA_DEALS, REELS
from modules.catalog.service import product_service

router = APIRouter(tags=["homepage"])


class HeroIn(BaseModel):
    headline: str = Field(..., min_length=1)
    subheadline: Optional[str] = None
    video_url: Optional[str] = None


class MegaDealIn(BaseModel):
    buy: int = Field(..., gt=0)
    get: int = Field(..., ge=0)
    total: Optional[int] = None
    active: bool = True


class ReelsIn(BaseModel):
    urls: List[str] = []


class TrendingIn(BaseModel):
    product_ids: List[int] = []


@router.get("/api/homepage")
async def homepage(db: Session = Depends(get_db)):
    return homepage_service.get_payload(db)


# ==========================================
# 🏠 Studio: Homepage
# ==========================================

@router.get("/studio/homepage")
async def studio_homepage(db: Session = Depends(get_db)):
    return {
        "hero": homepage_service.get(db, HERO),
        "mega_deals": homepage_service.get(db, MEGA_DEALS),
        "reels": homepage_service.get(db, REELS),
        "trending": [p.id for p in product_service.list_trending(db)],
    }


@router.put("/studio/homepage/hero")
async def studio_hero(body: HeroIn, db: Session = Depends(get_db)):
    try:
        hero = homepage_service.set_hero(db, body.model_dump())
    except EvoError as e:
        raise_http(e, 400)
    db.commit()
    return hero


@router.put("/studio/homepage/mega-deals")
async def studio_mega_deals(body: List[MegaDealIn], db: Session = Depends(get_db)):
    try:
        deals = homepage_service.set_mega_deals(db, [d.model_dump() for d in body])
    except EvoError as e:
        raise_http(e, 400)
    db.commit()
    return deals


@router.put("/studio/homepage/reels")
async def studio_reels(body: ReelsIn, db: Session = Depends(get_db)):
    reels = homepage_service.set_reels(db, body.urls)
    db.commit()
    return reels


@router.put("/studio/homepage/trending")
async def studio_trending(body: TrendingIn, db: Session = Depends(get_db)):
    count = product_service.set_trending(db, body.product_ids)
    db.commit()
    return {"count": count, "trending": [p.to_dict() for p in product_service.list_trending(db)]}
