"""Global constants for the skatehubba application."""

# Collection names
USERS_COLLECTION = "users"
MATCHES_COLLECTION = "matches"
QUEUE_COLLECTION = "matchmaking_queue"
REMOTE_GAMES_COLLECTION = "remote_games"
ROUNDS_SUBCOLLECTION = "rounds"
VIDEOS_COLLECTION = "remote_videos"

# S.K.A.T.E. rules
SKATE_LETTERS = "SKATE"
MAX_LETTERS = len(SKATE_LETTERS)

# Matchmaking
QUEUE_SCAN_LIMIT = 10
COIN_FLIP_THRESHOLD = 0x80000000
DEFAULT_PLAYER_NAME = "Skater"
QUICK_MATCH_CANDIDATE_LIMIT = 50

# Video uploads
MAX_VIDEO_BYTES = 100 * 1024 * 1024
MAX_VIDEO_DURATION_MS = 60_000
UPLOAD_CHUNK_SIZE = 4 * 256 * 1024
ALLOWED_VIDEO_TYPES = {
    "video/mp4": "mp4",
    "video/quicktime": "mov",
    "video/webm": "webm",
}
