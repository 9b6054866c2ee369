import os

class Config:
    SECRET_KEY = os.environ.get('SECRET_KEY') or 'you-will-never-guess'
    # Comma separated list, or * for any origin
    CORS_ORIGINS = os.environ.get('CORS_ORIGINS', '*')
    SOCKETIO_NAMESPACE = os.environ.get('SOCKETIO_NAMESPACE', '/')
    HOST = os.environ.get('HOST', '0.0.0.0')
    PORT = int(os.environ.get('PORT', '3000'))
    LOG_LEVEL = os.environ.get('LOG_LEVEL', 'INFO').upper()
    # Boss and hero tuning
    BOSS_NAME = os.environ.get('BOSS_NAME', 'Magma Slime')
    BOSS_MAX_HP = int(os.environ.get('BOSS_MAX_HP', '10000'))
    HERO_BASE_ATTACK = float(os.environ.get('HERO_BASE_ATTACK', '100'))
    HERO_POWER_MULTIPLIER = float(os.environ.get('HERO_POWER_MULTIPLIER', '1.0'))
    # Timing windows (ms)
    COMBO_WINDOW_MS = int(os.environ.get('COMBO_WINDOW_MS', '3000'))
    ATTACK_COOLDOWN_MS = int(os.environ.get('ATTACK_COOLDOWN_MS', '500'))
    DEFEAT_BROADCAST_DELAY_MS = int(os.environ.get('DEFEAT_BROADCAST_DELAY_MS', '500'))
    ATTACK_LOG_CAPACITY = int(os.environ.get('ATTACK_LOG_CAPACITY', '100'))
    RECENT_ATTACKERS_LIMIT = int(os.environ.get('RECENT_ATTACKERS_LIMIT', '10'))
    # A reset during the defeat delay drops the pending bossDefeated broadcast
    CANCEL_DEFEAT_ON_RESET = os.environ.get('CANCEL_DEFEAT_ON_RESET', '1') not in ('0', 'false', 'False')
    # Exit the process when a socket handler raises unexpectedly
    TERMINATE_ON_INTERNAL_ERROR = os.environ.get('TERMINATE_ON_INTERNAL_ERROR', '1') not in ('0', 'false', 'False')
