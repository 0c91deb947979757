"""
PokePacks services.

Business logic for the card pool cache, pack drawing, the coin ledger,
and mini-game rewards.
"""
