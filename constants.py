import os

HOST = os.getenv("HOST", "0.0.0.0")
PORT = int(os.getenv("PORT", 5000))
RELOAD = os.getenv("RELOAD", "false").lower() in ("1", "true", "yes")

LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")
LOG_FILE = os.getenv("LOG_FILE", None)

# Comma separated, "*" allows every origin
CORS_ORIGINS = [origin.strip() for origin in os.getenv("CORS_ORIGINS", "*").split(",") if origin.strip()]

ICE_SERVERS = [
    {"urls": url.strip()}
    for url in os.getenv(
        "ICE_SERVERS",
        "stun:stun.l.google.com:19302,stun:stun1.l.google.com:19302",
    ).split(",")
    if url.strip()
]

DEFAULT_VIEWER_NAME = os.getenv("DEFAULT_VIEWER_NAME", "Viewer")

HEALTH_MESSAGE = "Live Streaming Signaling Server is running!"
