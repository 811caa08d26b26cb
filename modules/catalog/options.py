"""
Catalog Module - Print Options
================================
Poster sizes and frame add-ons with their fixed prices (₹).
"""

import enum
from dataclasses import dataclass
from decimal import Decimal
from typing import Optional, List, Dict, Any

from common.helpers import to_decimal


class PosterSize(str, enum.Enum):
    A4 = "A4"
    A3 = "A3"


class FrameFinish(str, enum.Enum):
    BLACK = "Black"
    WHITE = "White"
    OAK = "Oak"
    WALNUT = "Walnut"


# Keyed by plain string so lookups work for enum members and raw input alike
POSTER_SIZES: Dict[str, Decimal] = {
    PosterSize.A4.value: Decimal("79"),
    PosterSize.A3.value: Decimal("109"),
}


@dataclass(frozen=True)
class FrameOption:
    size: str
    finish: str
    price: Decimal

    def to_dict(self) -> Dict[str, Any]:
        return {"size": self.size, "finish": self.finish, "price": str(self.price)}

    @classmethod
    def from_dict(cls, data: Optional[Dict[str, Any]]) -> Optional["FrameOption"]:
        if not data:
            return None
        return cls(
            size=_plain(data.get("size")),
            finish=_plain(data.get("finish")),
            price=to_decimal(data.get("price")),
        )


FRAME_OPTIONS: List[FrameOption] = [
    FrameOption(PosterSize.A4.value, FrameFinish.BLACK.value, Decimal("377")),
    FrameOption(PosterSize.A3.value, FrameFinish.BLACK.value, Decimal("477")),
]


def _plain(value) -> str:
    return value.value if isinstance(value, enum.Enum) else str(value or "")


def poster_price(size) -> Decimal:
    """Base price of a poster size. Unknown sizes price at 0."""
    return POSTER_SIZES.get(_plain(size), Decimal("0"))


def find_frame(size, finish=None) -> Optional[FrameOption]:
    """First frame offered for `size` (and `finish`, when given)."""
    size, finish = _plain(size), _plain(finish) if finish else None
    for frame in FRAME_OPTIONS:
        if frame.size == size and (finish is None or frame.finish.lower() == finish.lower()):
            return frame
    return None


def options_payload() -> Dict[str, Any]:
    return {
        "poster_sizes": [{"size": k, "price": str(v)} for k, v in POSTER_SIZES.items()],
        "frames": [f.to_dict() for f in FRAME_OPTIONS],
    }
