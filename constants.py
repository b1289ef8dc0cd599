import os

HOST = os.getenv("HOST", "0.0.0.0")
PORT = int(os.getenv("PORT", 3000))

STATIC_DIR = os.getenv("STATIC_DIR", "public")

ROOM_CAPACITY = int(os.getenv("ROOM_CAPACITY", 2))
ROOM_HISTORY_LIMIT = int(os.getenv("ROOM_HISTORY_LIMIT", 50))
ROOM_ID_LENGTH = int(os.getenv("ROOM_ID_LENGTH", 6))
ROOM_ID_MAX_LENGTH = 32
USERNAME_MAX_LENGTH = 64

# Empty rooms survive this long so a quick reconnect finds the same room
ROOM_GRACE_PERIOD_SECONDS = float(os.getenv("ROOM_GRACE_PERIOD_SECONDS", 30))

REAPER_INTERVAL_SECONDS = float(os.getenv("REAPER_INTERVAL_SECONDS", 60))
ROOM_IDLE_THRESHOLD_SECONDS = float(os.getenv("ROOM_IDLE_THRESHOLD_SECONDS", 3600))
