"""
Currency ledger.

Each operation is a single SQL UPDATE on the user's row, so concurrent
requests for the same user cannot interleave inside one change. All
functions run in the caller's transaction; none of them commit.

Floor policy: the ledger imposes no global minimum. Callers that must not
go below a value pass `floor`, and paid actions use `debit`, which refuses
to overdraw.
"""

import logging

from sqlalchemy import case, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from pokepacks.db.operations import get_user_by_id
from pokepacks.models.db import UserDB
from pokepacks.models.failure import InsufficientFundsError, InvalidAmountError, NotFoundError

logger = logging.getLogger(__name__)

# Largest value the INTEGER balance column holds on every backend
MAX_BALANCE = 2**31 - 1


async def _reload(session: AsyncSession, user_id: int) -> UserDB:
    user = await get_user_by_id(session, user_id)
    if user is None:
        raise NotFoundError("User", str(user_id))
    return user


async def get_balance(session: AsyncSession, user_id: int) -> int:
    """
    Current balance of a user.

    Raises:
        NotFoundError: If the user does not exist
    """
    result = await session.execute(select(UserDB.poke_coins).where(UserDB.id == user_id))
    balance = result.scalar_one_or_none()
    if balance is None:
        raise NotFoundError("User", str(user_id))
    return int(balance)


async def credit(
    session: AsyncSession,
    user_id: int,
    amount: int,
    *,
    floor: int | None = None,
) -> UserDB:
    """
    Add amount (negative to take coins) to a user's balance.

    Args:
        floor: If set, the stored balance is max(balance + amount, floor)

    Returns:
        The user with the updated balance.
    """
    new_balance = UserDB.poke_coins + amount
    if floor is not None:
        new_balance = case((new_balance < floor, floor), else_=new_balance)

    result = await session.execute(
        update(UserDB)
        .where(UserDB.id == user_id)
        .values(poke_coins=new_balance)
        .execution_options(synchronize_session=False)
    )
    # rowcount is available on UPDATE results; type stubs incomplete for async
    if not result.rowcount:  # type: ignore[attr-defined]
        raise NotFoundError("User", str(user_id))

    user = await _reload(session, user_id)
    logger.info(
        "LEDGER_CREDIT",
        extra={"user_id": user_id, "amount": amount, "floor": floor, "balance": user.poke_coins},
    )
    return user


async def debit(session: AsyncSession, user_id: int, cost: int) -> UserDB:
    """
    Take cost from a user's balance without overdrawing.

    The balance check and the subtraction are one statement, so two
    concurrent debits cannot both spend the same coins.

    Raises:
        InsufficientFundsError: If the balance is below cost
    """
    result = await session.execute(
        update(UserDB)
        .where(UserDB.id == user_id, UserDB.poke_coins >= cost)
        .values(poke_coins=UserDB.poke_coins - cost)
        .execution_options(synchronize_session=False)
    )
    if not result.rowcount:  # type: ignore[attr-defined]
        balance = await get_balance(session, user_id)
        raise InsufficientFundsError(balance=balance, cost=cost)

    user = await _reload(session, user_id)
    logger.info("LEDGER_DEBIT", extra={"user_id": user_id, "cost": cost, "balance": user.poke_coins})
    return user


async def set_balance(session: AsyncSession, user_id: int, amount: int) -> UserDB:
    """
    Overwrite a user's balance.

    Raises:
        InvalidAmountError: If amount is not an integer in [0, MAX_BALANCE]
    """
    if isinstance(amount, bool) or not isinstance(amount, int) or not 0 <= amount <= MAX_BALANCE:
        raise InvalidAmountError(amount)

    result = await session.execute(
        update(UserDB)
        .where(UserDB.id == user_id)
        .values(poke_coins=amount)
        .execution_options(synchronize_session=False)
    )
    if not result.rowcount:  # type: ignore[attr-defined]
        raise NotFoundError("User", str(user_id))

    logger.info("LEDGER_SET", extra={"user_id": user_id, "balance": amount})
    return await _reload(session, user_id)
