"""Tests for app key generation."""
import pytest

from apk_tracker.keys import (
    APP_KEY_PATTERN,
    BASE36_ALPHABET,
    generate_app_key,
    is_valid_app_key,
    key_timestamp_ms,
)


def test_key_format_and_timestamp():
    key = generate_app_key(now=1700000000.123)
    assert APP_KEY_PATTERN.match(key)
    prefix, ms, suffix = key.split("_")
    assert prefix == "apk"
    assert ms == "1700000000123"
    assert all(c in BASE36_ALPHABET for c in suffix)


def test_suffix_length_is_configurable():
    assert len(generate_app_key(length=9).split("_")[2]) == 9
    assert len(generate_app_key(length=20).split("_")[2]) == 20


def test_zero_length_rejected():
    with pytest.raises(ValueError):
        generate_app_key(length=0)


def test_keys_are_distinct_within_same_millisecond():
    keys = {generate_app_key(now=1700000000.0) for _ in range(200)}
    assert len(keys) == 200


@pytest.mark.parametrize("key,valid", [
    ("apk_1_abc", True),
    ("apk_1700000000123_z9y8x7w6v", True),
    ("apk__abc", False),
    ("apk_12_ABC", False),
    ("key_1_abc", False),
    ("", False),
])
def test_is_valid_app_key(key, valid):
    assert is_valid_app_key(key) is valid


def test_key_timestamp_ms():
    assert key_timestamp_ms("apk_1700000000123_abc") == 1700000000123
    assert key_timestamp_ms("not-a-key") is None
