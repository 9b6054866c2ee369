import math
import time
from collections import deque
from dataclasses import dataclass
from fractions import Fraction
from typing import Any, Callable, Deque, Dict, List, Optional, Union

from .errors import AlreadyDefeated

Number = Union[int, float, Fraction]
GameStateView = Dict[str, Any]

COMBO_WINDOW_MS = 3000
ATTACK_LOG_CAPACITY = 100
RECENT_ATTACKERS_LIMIT = 10

# (minimum streak length, multiplier), highest tier first
COMBO_TIERS = (
    (50, Fraction(2)),
    (25, Fraction(3, 2)),
    (10, Fraction(6, 5)),
)


def now_ms() -> int:
    return int(time.time() * 1000)


def exact(value: Number) -> Fraction:
    """Convert a configured number to a Fraction.

    Floats go through their decimal repr so that 1.2 becomes 6/5 rather than
    the nearest binary double; threshold damage stays exact (100 * 1.2 == 120).
    """
    if isinstance(value, Fraction):
        return value
    return Fraction(str(value))


def combo_multiplier(count: int) -> Fraction:
    for threshold, multiplier in COMBO_TIERS:
        if count >= threshold:
            return multiplier
    return Fraction(1)


@dataclass
class Boss:
    name: str
    max_hp: int
    current_hp: Optional[int] = None

    def __post_init__(self):
        if self.max_hp <= 0:
            raise ValueError(f'max_hp must be positive, got {self.max_hp}')
        if self.current_hp is None:
            self.current_hp = self.max_hp
        self.current_hp = max(0, min(self.current_hp, self.max_hp))

    @property
    def is_alive(self) -> bool:
        return self.current_hp > 0

    def take_damage(self, amount: int) -> None:
        self.current_hp = max(0, self.current_hp - amount)

    def restore(self) -> None:
        self.current_hp = self.max_hp

    def to_dict(self) -> Dict[str, Any]:
        return {
            'name': self.name,
            'currentHP': self.current_hp,
            'maxHP': self.max_hp,
            'isAlive': self.is_alive,
        }


@dataclass(frozen=True)
class Hero:
    """Collective damage stats shared by every attacker."""

    base_attack: Number = 100
    power_multiplier: Number = 1.0

    def raw_damage(self) -> Fraction:
        return exact(self.base_attack) * exact(self.power_multiplier)

    def to_dict(self) -> Dict[str, Any]:
        return {
            'baseAttack': self.base_attack,
            'powerMultiplier': self.power_multiplier,
        }


@dataclass
class Combo:
    count: int = 0
    # Engine start time until the first hit
    last_attack_ms: int = 0
    multiplier: Fraction = Fraction(1)

    def register(self, now: int, window_ms: int = COMBO_WINDOW_MS) -> None:
        """Count one hit at ``now``: extend the streak or start a new one."""
        if now - self.last_attack_ms < window_ms:
            self.count += 1
            self.multiplier = combo_multiplier(self.count)
        else:
            self.count = 1
            self.multiplier = Fraction(1)
        self.last_attack_ms = now

    def clear(self) -> None:
        # last_attack_ms is kept; the next hit still opens at count 1
        self.count = 0
        self.multiplier = Fraction(1)

    def to_dict(self) -> Dict[str, Any]:
        return {
            'count': self.count,
            'lastAttackTime': self.last_attack_ms,
            'multiplier': float(self.multiplier),
        }


@dataclass(frozen=True)
class AttackRecord:
    username: str
    damage: int
    timestamp: int

    def to_dict(self) -> Dict[str, Any]:
        return {
            'username': self.username,
            'damage': self.damage,
            'timestamp': self.timestamp,
        }


@dataclass(frozen=True)
class AttackOutcome:
    damage: int
    boss_hp: int
    boss_max_hp: int
    combo_count: int
    combo_multiplier: Fraction
    boss_defeated: bool

    def to_dict(self) -> Dict[str, Any]:
        return {
            'damage': self.damage,
            'bossHP': self.boss_hp,
            'bossMaxHP': self.boss_max_hp,
            'combo': self.combo_count,
            'comboMultiplier': float(self.combo_multiplier),
            'bossDefeated': self.boss_defeated,
        }


class CombatEngine:
    """Authoritative boss, hero and combo state.

    Not thread safe: callers serialize access (see ``BattleSession``).
    """

    def __init__(
        self,
        boss: Boss,
        hero: Optional[Hero] = None,
        combo_window_ms: int = COMBO_WINDOW_MS,
        log_capacity: int = ATTACK_LOG_CAPACITY,
        recent_limit: int = RECENT_ATTACKERS_LIMIT,
        clock: Callable[[], int] = now_ms,
    ):
        self.boss = boss
        self.hero = hero or Hero()
        self.combo = Combo(last_attack_ms=clock())
        self.combo_window_ms = combo_window_ms
        self.recent_limit = recent_limit
        self._clock = clock
        self._log: Deque[AttackRecord] = deque(maxlen=log_capacity)

    @classmethod
    def from_config(cls, config, clock: Optional[Callable[[], int]] = None) -> 'CombatEngine':
        boss = Boss(
            name=config.get('BOSS_NAME', 'Magma Slime'),
            max_hp=int(config.get('BOSS_MAX_HP', 10000)),
        )
        hero = Hero(
            base_attack=config.get('HERO_BASE_ATTACK', 100),
            power_multiplier=config.get('HERO_POWER_MULTIPLIER', 1.0),
        )
        return cls(
            boss,
            hero,
            combo_window_ms=int(config.get('COMBO_WINDOW_MS', COMBO_WINDOW_MS)),
            log_capacity=int(config.get('ATTACK_LOG_CAPACITY', ATTACK_LOG_CAPACITY)),
            recent_limit=int(config.get('RECENT_ATTACKERS_LIMIT', RECENT_ATTACKERS_LIMIT)),
            clock=clock or now_ms,
        )

    def attack(self, username: str, now: Optional[int] = None) -> AttackOutcome:
        """Resolve one hit against the boss.

        Raises ``AlreadyDefeated`` without touching any state when the boss is
        dead. Damage is ``floor(base * power * combo multiplier)``.
        """
        if not self.boss.is_alive:
            raise AlreadyDefeated()
        if now is None:
            now = self._clock()

        raw = self.hero.raw_damage()
        self.combo.register(now, self.combo_window_ms)
        damage = math.floor(raw * self.combo.multiplier)

        self.boss.take_damage(damage)
        self._log.append(AttackRecord(username, damage, now))

        return AttackOutcome(
            damage=damage,
            boss_hp=self.boss.current_hp,
            boss_max_hp=self.boss.max_hp,
            combo_count=self.combo.count,
            combo_multiplier=self.combo.multiplier,
            boss_defeated=not self.boss.is_alive,
        )

    def reset(self) -> None:
        self.boss.restore()
        self.combo.clear()
        self._log.clear()

    @property
    def attack_log(self) -> List[AttackRecord]:
        return list(self._log)

    def recent_attackers(self) -> List[AttackRecord]:
        if self.recent_limit <= 0:
            return []
        return list(self._log)[-self.recent_limit:]

    def snapshot(self) -> GameStateView:
        """Point-in-time copy of the game state, safe to hand to clients."""
        return {
            'boss': self.boss.to_dict(),
            'hero': self.hero.to_dict(),
            'combo': self.combo.to_dict(),
            'recentAttackers': [r.to_dict() for r in self.recent_attackers()],
        }

    def defeat_summary(self) -> Dict[str, Any]:
        # The log is bounded, so totalAttacks is not a lifetime counter
        attackers = [r.to_dict() for r in self._log]
        return {
            'attackers': attackers,
            'totalAttacks': len(attackers),
            'bossName': self.boss.name,
        }

    def status(self) -> Dict[str, Any]:
        boss = self.boss
        return {
            'boss': {
                'name': boss.name,
                'currentHP': boss.current_hp,
                'maxHP': boss.max_hp,
                'hpPercent': round(boss.current_hp * 100.0 / boss.max_hp, 1),
                'isAlive': boss.is_alive,
            },
            'combo': {
                'count': self.combo.count,
                'multiplier': float(self.combo.multiplier),
            },
            'attackers': {
                'recent': len(self.recent_attackers()),
                'logged': len(self._log),
                'unique': len({r.username for r in self._log}),
            },
        }
