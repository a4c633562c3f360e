"""Application-wide configuration constants."""

APP_NAME = "pyrouter"

# Models
DEFAULT_MODEL = "moonshotai/kimi-k2.5"
DEFAULT_IMAGE_MODEL = "google/gemini-2.5-flash-image"

# Environment
API_KEY_ENV = "OPENROUTER_API_KEY"
CONFIG_DIR_ENV = "PYROUTER_CONFIG_DIR"
API_KEYS_URL = "https://openrouter.ai/keys"

# Files
CONFIG_FILE_NAME = "config.json"
SESSIONS_DIR_NAME = "sessions"

# Chat behaviour
ESC_TIMEOUT = 2.0  # Seconds to confirm a double-press ESC action
STREAM_BUFFER_SIZE = 100  # Chunks buffered between producer and UI
