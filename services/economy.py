"""
Currency ledger: guarded adjustments of a user's gem balance.

credit/debit are pure; add_gems/subtract_gems apply them to a user record
and persist it. The read-modify-write is not wrapped in a transaction, so
concurrent mutations on the same user can lose an update (last writer wins).
"""
from __future__ import annotations

import logging

from models import storage
from models.user import MAX_INT64
from services.errors import InvalidAmount, InsufficientFunds

logger = logging.getLogger(__name__)

# largest single credit or debit
MAX_AMOUNT = 1_000_000_000


def _check_amount(amount) -> int:
    if isinstance(amount, bool) or not isinstance(amount, int) or not 0 < amount <= MAX_AMOUNT:
        raise InvalidAmount()
    return amount


def credit(balance: int, amount: int) -> int:
    amount = _check_amount(amount)
    if balance + amount > MAX_INT64:
        raise InvalidAmount("Balance would exceed the maximum")
    return balance + amount


def debit(balance: int, amount: int) -> int:
    amount = _check_amount(amount)
    if balance < amount:
        raise InsufficientFunds()
    return balance - amount


def balance(user) -> int:
    return user.gems


def add_gems(user, amount: int):
    user.gems = credit(user.gems, amount)
    storage.new(user)
    storage.save()
    logger.info("credited %d gems to user %s", amount, user.id)
    return user


def subtract_gems(user, amount: int):
    user.gems = debit(user.gems, amount)
    storage.new(user)
    storage.save()
    logger.info("debited %d gems from user %s", amount, user.id)
    return user
