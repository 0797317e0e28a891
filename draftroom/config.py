import os

DATABASE_URL = os.getenv("DRAFTROOM_DATABASE_URL", "draftroom.db")

# Read-compute-write attempts before a conflicting write gives up
MAX_WRITE_RETRIES = int(os.getenv("DRAFTROOM_MAX_WRITE_RETRIES", "5"))

CORS_ORIGINS = [
    origin.strip()
    for origin in os.getenv(
        "DRAFTROOM_CORS_ORIGINS",
        "http://localhost:3000,http://127.0.0.1:3000",
    ).split(",")
    if origin.strip()
]

LOG_LEVEL = os.getenv("DRAFTROOM_LOG_LEVEL", "INFO").upper()

MIN_ROUNDS = 1
