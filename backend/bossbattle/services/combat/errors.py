from typing import Any, Dict, Optional


class BattleError(Exception):
    """A rejected request. Reported to the requesting client only."""

    code = 'battle_error'
    message = 'Request rejected'

    def __init__(self, message: Optional[str] = None):
        super().__init__(message or self.message)
        if message:
            self.message = message

    def to_payload(self) -> Dict[str, Any]:
        return {'code': self.code, 'message': self.message}


class MissingUsername(BattleError):
    code = 'missing_username'
    message = 'Username required'


class CooldownActive(BattleError):
    code = 'cooldown_active'
    message = 'Cooldown active'

    def __init__(self, remaining_ms: int):
        super().__init__()
        self.remaining_ms = remaining_ms

    def to_payload(self) -> Dict[str, Any]:
        payload = super().to_payload()
        payload['remainingMs'] = self.remaining_ms
        return payload


class AlreadyDefeated(BattleError):
    code = 'already_defeated'
    message = 'Boss already defeated'
