"""Realtime session coordinator.

Owns the combat engine, the per-username cooldown registry and the set of
connected clients. Every mutation and every broadcast happens under one
lock so concurrent Socket.IO handlers cannot interleave hits against the
shared boss HP and combo counter.
"""

import threading
from typing import Any, Callable, Dict, Optional, Tuple

from .combat import (
    BattleError,
    CombatEngine,
    CooldownActive,
    DefeatScheduler,
    MissingUsername,
    PendingDefeat,
)
from .combat.engine import AttackOutcome, GameStateView, now_ms

ATTACK_COOLDOWN_MS = 500
DEFEAT_BROADCAST_DELAY_MS = 500

# (sid, namespace)
Client = Tuple[str, str]


class BattleSession:
    def __init__(
        self,
        engine: CombatEngine,
        transport,
        logger,
        cooldown_ms: int = ATTACK_COOLDOWN_MS,
        defeat_delay_ms: int = DEFEAT_BROADCAST_DELAY_MS,
        cancel_defeat_on_reset: bool = True,
        clock: Callable[[], int] = now_ms,
    ):
        self.engine = engine
        self.logger = logger
        self.cooldown_ms = cooldown_ms
        self.defeat_delay_ms = defeat_delay_ms
        self.cancel_defeat_on_reset = cancel_defeat_on_reset
        self._transport = transport
        self._clock = clock
        self._lock = threading.RLock()
        # dict keeps connection order for deterministic fan-out
        self._clients: Dict[Client, None] = {}
        self._cooldowns: Dict[str, int] = {}
        self.defeats = DefeatScheduler(
            transport.start_background_task,
            transport.sleep,
            self._announce_defeat,
        )

    @classmethod
    def from_config(cls, config, transport, logger, clock: Optional[Callable[[], int]] = None) -> 'BattleSession':
        clock = clock or now_ms
        return cls(
            CombatEngine.from_config(config, clock=clock),
            transport,
            logger,
            cooldown_ms=int(config.get('ATTACK_COOLDOWN_MS', ATTACK_COOLDOWN_MS)),
            defeat_delay_ms=int(config.get('DEFEAT_BROADCAST_DELAY_MS', DEFEAT_BROADCAST_DELAY_MS)),
            cancel_defeat_on_reset=bool(config.get('CANCEL_DEFEAT_ON_RESET', True)),
            clock=clock,
        )

    # ---- connection registry ----

    def handle_connect(self, sid: str, namespace: str = '/') -> None:
        with self._lock:
            self._clients[(sid, namespace)] = None
            self.logger.info(f"[connect] sid={sid} namespace={namespace} clients={len(self._clients)}")
            self._send(sid, namespace, 'gameState', self.engine.snapshot())

    def handle_disconnect(self, sid: str, namespace: str = '/') -> None:
        with self._lock:
            self._clients.pop((sid, namespace), None)
            self.logger.info(f"[disconnect] sid={sid} namespace={namespace} clients={len(self._clients)}")

    @property
    def connected_clients(self) -> int:
        with self._lock:
            return len(self._clients)

    def broadcast(self, event: str, payload: Dict[str, Any]) -> None:
        with self._lock:
            for sid, namespace in list(self._clients):
                self._send(sid, namespace, event, payload)

    def _send(self, sid: str, namespace: str, event: str, payload: Dict[str, Any]) -> None:
        self._transport.emit(event, payload, to=sid, namespace=namespace)

    # ---- game protocol ----

    def handle_attack(self, sid: str, namespace: str, username: Any) -> Optional[AttackOutcome]:
        """Process one ``attack`` request from ``sid``.

        Successful hits are broadcast to every client; rejections go back to
        the sender only as an ``error`` event. Returns the outcome, or None
        when the attack was rejected.
        """
        with self._lock:
            try:
                outcome = self._attack(username)
            except CooldownActive as exc:
                self.logger.info(f"[cooldown] user={username} remaining_ms={exc.remaining_ms}")
                self._send(sid, namespace, 'error', exc.to_payload())
                return None
            except BattleError as exc:
                self.logger.debug(f"[attack-rejected] sid={sid} user={username!r} code={exc.code}")
                self._send(sid, namespace, 'error', exc.to_payload())
                return None

            self.logger.info(
                f"[attack] user={username} damage={outcome.damage} boss_hp={outcome.boss_hp} "
                f"combo={outcome.combo_count} x{float(outcome.combo_multiplier)}"
            )
            payload = {'username': username}
            payload.update(outcome.to_dict())
            self.broadcast('attackResult', payload)

            if outcome.boss_defeated:
                summary = self.engine.defeat_summary()
                self.defeats.schedule(summary, self.defeat_delay_ms)
                self.logger.info(
                    f"[defeat] boss={summary['bossName']} attacks={summary['totalAttacks']} "
                    f"delay_ms={self.defeat_delay_ms}"
                )
            return outcome

    def _attack(self, username: Any) -> AttackOutcome:
        if not isinstance(username, str) or not username:
            raise MissingUsername()

        now = self._clock()
        last = self._cooldowns.get(username)
        if last is not None and now - last < self.cooldown_ms:
            raise CooldownActive(self.cooldown_ms - (now - last))

        # AlreadyDefeated propagates before the cooldown is recorded
        outcome = self.engine.attack(username, now=now)
        self._cooldowns[username] = now
        return outcome

    def handle_reset(self) -> None:
        with self._lock:
            self.engine.reset()
            self._cooldowns.clear()
            if self.cancel_defeat_on_reset:
                dropped = self.defeats.cancel_pending()
                if dropped:
                    self.logger.info(f"[defeat-cancel] dropped={dropped} pending announcement(s) by reset")
            self.logger.info(f"[reset] boss={self.engine.boss.name} hp={self.engine.boss.current_hp}")
            self.broadcast('gameState', self.engine.snapshot())
            self.broadcast('bossReset', {})

    def _announce_defeat(self, handle: PendingDefeat) -> None:
        with self._lock:
            if not self.defeats.fire(handle):
                self.logger.info("[defeat-skip] announcement cancelled before delivery")
                return
            self.broadcast('bossDefeated', handle.summary)

    # ---- read-only views ----

    def snapshot(self) -> GameStateView:
        with self._lock:
            return self.engine.snapshot()

    def status(self) -> Dict[str, Any]:
        with self._lock:
            data = self.engine.status()
            data['connectedClients'] = len(self._clients)
            return data

    @property
    def cooldowns(self) -> Dict[str, int]:
        with self._lock:
            return dict(self._cooldowns)
