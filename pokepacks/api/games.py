"""
Mini-game API endpoints.

Clients report what happened; rewards are computed server-side by the
calculators in services.rewards and paid through the ledger. Each endpoint
commits its ledger change (and, for a free spin pack, its collection rows)
in one transaction.
"""

import logging
import random
from typing import Annotated, Any

from fastapi import APIRouter, Depends
from pydantic import Field
from sqlalchemy.ext.asyncio import AsyncSession

from pokepacks.api.dependencies import (
    get_card_pools,
    get_challenges,
    get_pack_catalog,
    get_pokeapi,
    get_rng,
    require_user,
)
from pokepacks.api.packs import PackResponse, pack_response
from pokepacks.api.schemas import CamelModel, UserResponse, UsernameRequest
from pokepacks.db.database import get_session
from pokepacks.db.operations import get_user_by_id
from pokepacks.models.db import UserDB
from pokepacks.services import ledger
from pokepacks.services.card_pools import CardPoolProvider
from pokepacks.services.catalog_client import PokeApiClient
from pokepacks.services.challenges import ChallengeRegistry
from pokepacks.services.pack_catalog import PackCatalog
from pokepacks.services.pack_opening import PackResult, grant_free_pack
from pokepacks.services.rewards import (
    SPIN_BALANCE_FLOOR,
    MemoryTelemetry,
    display_name,
    get_memory_mode,
    memory_reward,
    silhouette_reward,
    spin_wheel,
    typing_reward,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/games", tags=["games"])


# --- Request / response models ---


class MemoryFinishRequest(CamelModel):
    """End-of-game stats from the memory-match board."""

    username: str = Field(..., min_length=1)
    difficulty: str = "easy"
    pairs_total: float | None = Field(
        default=None,
        allow_inf_nan=False,
        description="Informational; the board size is fixed by difficulty",
    )
    pairs_matched: float = Field(default=0, allow_inf_nan=False)
    mismatches: float = Field(default=0, allow_inf_nan=False)
    time_left: float = Field(default=0, allow_inf_nan=False)
    streak_max: float = Field(default=1, allow_inf_nan=False)


class MemoryFinishResponse(CamelModel):
    won: bool
    coins: int
    breakdown: dict[str, Any]
    user: UserResponse


class SpinOutcomeResponse(CamelModel):
    type: str
    label: str
    delta: int | None = None


class SpinResponse(CamelModel):
    outcome: SpinOutcomeResponse
    user: UserResponse
    pack: PackResponse | None = None


class SilhouetteStartResponse(CamelModel):
    token: str
    image: str


class SilhouetteGuessRequest(CamelModel):
    username: str = Field(..., min_length=1)
    token: str = Field(..., min_length=1)
    guess: str = ""


class SilhouetteGuessResponse(CamelModel):
    correct: bool
    user: UserResponse
    answer: str | None = Field(default=None, description="Revealed only after a wrong guess")
    pokemon_name: str
    image: str


class TypingFinishRequest(CamelModel):
    username: str = Field(..., min_length=1)
    correct_words: float = Field(default=0, allow_inf_nan=False)
    max_streak: float = Field(default=0, allow_inf_nan=False)


class TypingFinishResponse(CamelModel):
    coins: int
    user: UserResponse


# --- Helpers ---


async def _commit_and_reload(session: AsyncSession, user: UserDB) -> UserDB:
    """Commit the pending change, rolling back on failure, then re-read the user."""
    try:
        await session.commit()
    except Exception:
        await session.rollback()
        raise
    return await get_user_by_id(session, user.id) or user


async def _pay_reward(session: AsyncSession, user: UserDB, coins: int) -> UserDB:
    if coins > 0:
        await ledger.credit(session, user.id, coins)
    return await _commit_and_reload(session, user)


# --- Endpoints ---


@router.post("/memory/finish", response_model=MemoryFinishResponse)
async def finish_memory(
    request: MemoryFinishRequest,
    session: Annotated[AsyncSession, Depends(get_session)],
) -> MemoryFinishResponse:
    """Score a memory-match game and pay the reward."""
    user = await require_user(session, request.username)
    mode = get_memory_mode(request.difficulty)
    if request.pairs_total is not None and request.pairs_total != mode.pairs:
        logger.info(
            "MEMORY_PAIRS_MISMATCH",
            extra={"reported": request.pairs_total, "expected": mode.pairs, "mode": mode.name},
        )

    reward = memory_reward(
        MemoryTelemetry(
            pairs_matched=request.pairs_matched,
            mismatches=request.mismatches,
            time_left=request.time_left,
            streak_max=request.streak_max,
        ),
        mode,
    )
    updated = await _pay_reward(session, user, reward.coins)

    breakdown = {k: v for k, v in reward.breakdown.items() if k != "won"}
    return MemoryFinishResponse(
        won=bool(reward.breakdown["won"]),
        coins=reward.coins,
        breakdown=breakdown,
        user=UserResponse.model_validate(updated),
    )


@router.post("/spin", response_model=SpinResponse)
async def spin(
    request: UsernameRequest,
    session: Annotated[AsyncSession, Depends(get_session)],
    pools: Annotated[CardPoolProvider, Depends(get_card_pools)],
    catalog: Annotated[PackCatalog, Depends(get_pack_catalog)],
    rng: Annotated[random.Random, Depends(get_rng)],
) -> SpinResponse:
    """
    Spin the wheel once.

    Coin outcomes never take the balance below zero. The free pack outcome
    draws a full pack from a random set at no cost.
    """
    user = await require_user(session, request.username)
    outcome = spin_wheel(rng)

    pack: PackResult | None = None
    try:
        if outcome.type == "coins":
            await ledger.credit(session, user.id, outcome.delta, floor=SPIN_BALANCE_FLOOR)
        else:
            set_id = catalog.random_set_id(rng)
            pack = await grant_free_pack(session, user, set_id, pools, rng=rng)
    except Exception:
        await session.rollback()
        raise
    updated = await _commit_and_reload(session, user)

    logger.info("SPIN", extra={"user_id": user.id, "outcome": outcome.label})
    if pack is not None:
        pack.user = updated
    return SpinResponse(
        outcome=SpinOutcomeResponse(
            type=outcome.type,
            label=outcome.label,
            delta=outcome.delta if outcome.type == "coins" else None,
        ),
        user=UserResponse.model_validate(updated),
        pack=pack_response(pack) if pack is not None else None,
    )


@router.post("/silhouette/start", response_model=SilhouetteStartResponse)
async def start_silhouette(
    challenges: Annotated[ChallengeRegistry, Depends(get_challenges)],
    pokeapi: Annotated[PokeApiClient, Depends(get_pokeapi)],
    rng: Annotated[random.Random, Depends(get_rng)],
) -> SilhouetteStartResponse:
    """Start a challenge: pick a Pokémon and return its token and artwork."""
    name, image = await pokeapi.random_pokemon(rng)
    token = challenges.create(name, image)
    return SilhouetteStartResponse(token=token, image=image)


@router.post(
    "/silhouette/guess",
    response_model=SilhouetteGuessResponse,
    response_model_exclude_none=True,
)
async def guess_silhouette(
    request: SilhouetteGuessRequest,
    session: Annotated[AsyncSession, Depends(get_session)],
    challenges: Annotated[ChallengeRegistry, Depends(get_challenges)],
) -> SilhouetteGuessResponse:
    """
    Submit a guess for a challenge.

    The token is spent by the first guess, right or wrong.
    """
    user = await require_user(session, request.username)
    challenge = challenges.consume(request.token)

    reward = silhouette_reward(request.guess, challenge.answer)
    correct = bool(reward.breakdown["correct"])
    updated = await _pay_reward(session, user, reward.coins)

    return SilhouetteGuessResponse(
        correct=correct,
        user=UserResponse.model_validate(updated),
        answer=None if correct else challenge.answer,
        pokemon_name=display_name(challenge.answer),
        image=challenge.image_url,
    )


@router.post("/typing/finish", response_model=TypingFinishResponse)
async def finish_typing(
    request: TypingFinishRequest,
    session: Annotated[AsyncSession, Depends(get_session)],
) -> TypingFinishResponse:
    """Score a typing challenge and pay the reward."""
    user = await require_user(session, request.username)
    reward = typing_reward(request.correct_words, request.max_streak)
    updated = await _pay_reward(session, user, reward.coins)
    return TypingFinishResponse(coins=reward.coins, user=UserResponse.model_validate(updated))
