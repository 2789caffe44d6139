import pytest

from tokenstate.addresses import address, parse_address

KEY = bytes(range(32))


def test_round_trip():
    assert parse_address(address(KEY, "token"), "token") == KEY


def test_empty_key_round_trip():
    assert parse_address(address(bytes(32), "token"), "token") == bytes(32)


def test_prefix_and_separator():
    text = address(KEY, "token")
    assert text.startswith("token1")
    assert text == text.lower()


def test_different_keys_give_different_addresses():
    assert address(KEY, "token") != address(bytes(32), "token")


def test_uppercase_accepted():
    assert parse_address(address(KEY, "token").upper(), "token") == KEY


def test_wrong_hrp_rejected():
    with pytest.raises(ValueError):
        parse_address(address(KEY, "other"), "token")


def test_corrupted_character_rejected():
    text = address(KEY, "token")
    flipped = "q" if text[-3] != "q" else "p"
    with pytest.raises(ValueError):
        parse_address(text[:-3] + flipped + text[-2:], "token")


def test_mixed_case_rejected():
    text = address(KEY, "token")
    with pytest.raises(ValueError):
        parse_address(text[:10].upper() + text[10:], "token")


def test_short_key_rejected():
    with pytest.raises(ValueError):
        address(b"\x01" * 20, "token")


def test_missing_separator_rejected():
    with pytest.raises(ValueError):
        parse_address("tokenqqqqqqqqq", "token")