from dataclasses import dataclass
from typing import Any


@dataclass(frozen=True, slots=True)
class Card:
    """
    A drawable card from the external catalog.

    Attributes:
        id: Catalog card id (e.g., "sv1-25")
        name: Card name
        rarity: Rarity label exactly as the catalog reports it, or None
        image_small: Small image URL
        image_large: Large image URL
        number: Collector number within the set
        set_id: Collection identifier the card belongs to
        set_name: Human-readable set name
    """

    id: str
    name: str
    rarity: str | None = None
    image_small: str | None = None
    image_large: str | None = None
    number: str | None = None
    set_id: str | None = None
    set_name: str | None = None

    @property
    def image_url(self) -> str:
        """Best available image, large preferred."""
        return self.image_large or self.image_small or ""

    @classmethod
    def from_api(cls, data: dict[str, Any]) -> "Card":
        """Build from the catalog API JSON shape (also the cache file shape)."""
        images = data.get("images") or {}
        card_set = data.get("set") or {}
        return cls(
            id=str(data["id"]),
            name=data.get("name", ""),
            rarity=data.get("rarity"),
            image_small=images.get("small"),
            image_large=images.get("large"),
            number=data.get("number"),
            set_id=card_set.get("id"),
            set_name=card_set.get("name"),
        )

    def to_api(self) -> dict[str, Any]:
        """Serialize back to the catalog API JSON shape."""
        return {
            "id": self.id,
            "name": self.name,
            "rarity": self.rarity,
            "images": {"small": self.image_small, "large": self.image_large},
            "number": self.number,
            "set": {"id": self.set_id, "name": self.set_name},
        }
