"""Configuration constants.

Values here are file-format and protocol details that should NOT be
user-configurable. For configurable values, see models.py.
"""

# =============================================================================
# Defaults surfaced through models.py
# =============================================================================

DEFAULT_CONTEXT_WINDOW_SIZE = 1000
"""Characters of surrounding code sent to the oracle per identifier."""

DEFAULT_CHECKPOINT_DIRNAME = ".checkpoints"
"""Checkpoint directory, relative to the output directory."""

DEFAULT_MAPPING_FILENAME = "rename-mappings.json"
"""Consolidated mapping artifact, relative to the output directory."""

# =============================================================================
# Checkpoint file layout
# =============================================================================

CHECKPOINT_FILENAME = "checkpoint.json"
"""Single canonical progress record (last write wins)."""

SHARD_PREFIX = "partial_"
"""Every partial result shard file name starts with this prefix."""

SHARD_TIMESTAMP_DIGITS = 20
"""Zero-padded nanosecond timestamp width; keeps name order == creation order."""

# =============================================================================
# Renamer defaults
# =============================================================================

REMOTE_SAVE_INTERVAL = 5
"""Checkpoint interval for rate-limited remote oracles."""

LOCAL_SAVE_INTERVAL = 10
"""Checkpoint interval for local inference."""

OPENAI_DEFAULT_MODEL = "gpt-4o-mini"
OPENAI_DEFAULT_BASE_URL = "https://api.openai.com/v1"

GEMINI_DEFAULT_MODEL = "gemini-1.5-flash"
GEMINI_DEFAULT_BASE_URL = "https://generativelanguage.googleapis.com/v1beta"

LOCAL_DEFAULT_MODEL = "local"
LOCAL_DEFAULT_BASE_URL = "http://127.0.0.1:8080/v1"

FILENAME_PROBE_CHARS = 400
"""Leading characters shown to the local model when guessing a file name."""
