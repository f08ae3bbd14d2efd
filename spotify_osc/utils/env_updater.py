"""Persist Spotify tokens into the project's .env file."""

import os
import re
from collections.abc import Mapping
from pathlib import Path

from spotify_osc.logging_config import get_logger

logger = get_logger(__name__)

_KEY_PATTERN = re.compile(r"^[A-Za-z_][A-Za-z0-9_]*$")


def update_env_file(env_path: Path, updates: Mapping[str, str]) -> None:
    """Set one or more ``KEY=value`` lines in a .env file.

    Existing keys are replaced where they are, new keys are appended, and
    comments are left alone. The file is created with owner-only permissions
    when missing and replaced atomically, so a crash never leaves a token
    pair half written.

    Args:
        env_path: Path to .env file
        updates: Variable names mapped to their new values

    Raises:
        OSError: If the file or its directory can't be written
        ValueError: If a key is not a valid variable name or a value spans lines
    """
    for key, value in updates.items():
        if not _KEY_PATTERN.match(key):
            raise ValueError(f"Invalid environment variable key: {key}")
        if "\n" in value or "\r" in value:
            raise ValueError(f"Value for {key} must be a single line")

    lines = env_path.read_text(encoding="utf-8").splitlines() if env_path.exists() else []

    pending = dict(updates)
    for i, line in enumerate(lines):
        key, sep, _ = line.partition("=")
        key = key.strip()
        if sep and key in pending:
            lines[i] = f"{key}={pending.pop(key)}"

    if pending:
        if lines and lines[-1].strip():
            lines.append("")
        lines.extend(f"{key}={value}" for key, value in pending.items())

    tmp_path = env_path.with_name(f"{env_path.name}.tmp")
    fd = os.open(tmp_path, os.O_WRONLY | os.O_CREAT | os.O_TRUNC, 0o600)
    with os.fdopen(fd, "w", encoding="utf-8") as f:
        f.write("\n".join(lines) + "\n")
    os.replace(tmp_path, env_path)

    logger.debug(f"Wrote {', '.join(updates)} to {env_path}")


def get_env_path() -> Path:
    """Path to the .env file in the project root."""
    return Path(__file__).parent.parent.parent / ".env"
