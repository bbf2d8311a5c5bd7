"""
Clip Export service configuration.
"""
import os

# Service settings
SERVICE_NAME = "clip-export"
SERVICE_VERSION = "1.0.0"

# Render engine
RENDER_ENGINE = os.getenv("RENDER_ENGINE", "creatomate")
CREATOMATE_API_KEY = os.getenv("CREATOMATE_API_KEY", "")
CREATOMATE_API_BASE = os.getenv("CREATOMATE_API_BASE", "https://api.creatomate.com/v2")
RENDER_REQUEST_TIMEOUT = float(os.getenv("RENDER_REQUEST_TIMEOUT", 30))

# Output settings
RENDER_FRAME_RATE = int(os.getenv("RENDER_FRAME_RATE", 30))
RENDER_OUTPUT_FORMAT = "mp4"

# Polling settings
RENDER_POLL_INTERVAL = float(os.getenv("RENDER_POLL_INTERVAL", 3.0))
RENDER_STATUS_CONCURRENCY = int(os.getenv("RENDER_STATUS_CONCURRENCY", 5))
# Seconds a job may stay rendering before it is marked failed (0 disables)
RENDER_MAX_SECONDS = float(os.getenv("RENDER_MAX_SECONDS", 1800))

# Source video
YOUTUBE_WATCH_URL = "https://www.youtube.com/watch?v={video_id}"
