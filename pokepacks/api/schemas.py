"""
Response and request models shared across routers.

User and collection rows keep their snake_case column names; game and
pack payloads use camelCase on the wire.
"""

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from pokepacks.models.card import Card


class CamelModel(BaseModel):
    """Model serialized with camelCase keys; accepts either spelling on input."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class UserResponse(BaseModel):
    """A user and their balance."""

    model_config = ConfigDict(from_attributes=True)

    id: int
    username: str
    poke_coins: int


class CardImages(BaseModel):
    small: str | None = None
    large: str | None = None


class SetInfo(BaseModel):
    id: str | None = None
    name: str | None = None


class CardResponse(BaseModel):
    """A drawn card in catalog API shape."""

    id: str
    name: str
    rarity: str | None = None
    number: str | None = None
    images: CardImages = Field(default_factory=CardImages)
    set: SetInfo = Field(default_factory=SetInfo)

    @classmethod
    def from_card(cls, card: Card) -> "CardResponse":
        return cls(
            id=card.id,
            name=card.name,
            rarity=card.rarity,
            number=card.number,
            images=CardImages(small=card.image_small, large=card.image_large),
            set=SetInfo(id=card.set_id, name=card.set_name),
        )


class UsernameRequest(BaseModel):
    """Body carrying only the acting username."""

    username: str = Field(..., min_length=1, examples=["ash"])
