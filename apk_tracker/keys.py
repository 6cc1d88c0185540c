"""
App key generation for APK Tracker

Keys look like ``apk_<ms-epoch>_<random-base36>``. The timestamp plus random
suffix makes collisions practically impossible; nothing checks existing keys
before insert (the unique index on ``apps.app_key`` rejects the rare clash).
"""
import re
import secrets
import string
import time
from typing import Optional

from .config import APP_KEY_PREFIX, APP_KEY_RANDOM_LENGTH

BASE36_ALPHABET = string.digits + string.ascii_lowercase

APP_KEY_PATTERN = re.compile(r"^apk_\d+_[0-9a-z]+$")


def generate_app_key(now: Optional[float] = None, length: Optional[int] = None) -> str:
    """
    Generate a new tracking key.

    Args:
        now: Epoch seconds to stamp the key with (defaults to the current time)
        length: Number of random base36 characters (defaults to APP_KEY_RANDOM_LENGTH)

    Returns:
        Key string of the form apk_<ms-epoch>_<random>
    """
    if length is None:
        length = APP_KEY_RANDOM_LENGTH
    if length < 1:
        raise ValueError("length must be at least 1")

    timestamp_ms = int((time.time() if now is None else now) * 1000)
    suffix = ''.join(secrets.choice(BASE36_ALPHABET) for _ in range(length))
    return f"{APP_KEY_PREFIX}_{timestamp_ms}_{suffix}"


def is_valid_app_key(key: str) -> bool:
    """Check that a key matches the apk_<digits>_<base36> format."""
    return bool(key) and APP_KEY_PATTERN.match(key) is not None


def key_timestamp_ms(key: str) -> Optional[int]:
    """Extract the millisecond timestamp embedded in a key, or None if malformed."""
    if not is_valid_app_key(key):
        return None
    return int(key.split("_")[1])
