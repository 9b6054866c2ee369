"""Combat domain services: the boss engine and the defeat timer.

This package holds the pure game mechanics that socket handlers and HTTP
routes import, keeping transport concerns out of damage and combo rules.
"""

from .engine import AttackOutcome, AttackRecord, Boss, Combo, CombatEngine, Hero
from .errors import AlreadyDefeated, BattleError, CooldownActive, MissingUsername
from .scheduler import DefeatScheduler, PendingDefeat

__all__ = [
    'AlreadyDefeated',
    'AttackOutcome',
    'AttackRecord',
    'BattleError',
    'Boss',
    'Combo',
    'CombatEngine',
    'CooldownActive',
    'DefeatScheduler',
    'Hero',
    'MissingUsername',
    'PendingDefeat',
]
