import os

class Config:
    SECRET_KEY = os.environ.get('SECRET_KEY') or 'you-will-never-guess'
    HOST = os.environ.get('HOST', '0.0.0.0')
    PORT = int(os.environ.get('PORT', '3000'))
    # Maximum concurrent joined sessions
    MAX_PLAYERS = int(os.environ.get('MAX_PLAYERS', '20'))
    # Heartbeat ping period and eviction window (seconds)
    HEARTBEAT_INTERVAL_SEC = float(os.environ.get('HEARTBEAT_INTERVAL_SEC', '15'))
    HEARTBEAT_TIMEOUT_SEC = float(os.environ.get('HEARTBEAT_TIMEOUT_SEC', '30'))
    # Socket.IO namespace the game client connects to
    RELAY_NAMESPACE = os.environ.get('RELAY_NAMESPACE', '/')
    # Comma separated list, or '*' for any origin
    CORS_ALLOWED_ORIGINS = os.environ.get('CORS_ALLOWED_ORIGINS', '*')
    LOG_LEVEL = os.environ.get('LOG_LEVEL', 'INFO')
