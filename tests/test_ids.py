import pytest

from tokenstate.ids import EMPTY_ID, decode_id, encode_id


def test_empty_id_text_form():
    assert encode_id(EMPTY_ID) == "11111111111111111111111111111111LpoYY"


def test_empty_id_parses_back():
    assert decode_id("11111111111111111111111111111111LpoYY") == EMPTY_ID


@pytest.mark.parametrize(
    "raw",
    [bytes(range(32)), b"\xff" * 32, b"\x00\x00" + b"\x07" * 30],
)
def test_round_trip(raw):
    assert decode_id(encode_id(raw)) == raw


def test_leading_zero_bytes_kept():
    raw = b"\x00" * 5 + b"\x01" * 27
    text = encode_id(raw)
    assert text.startswith("11111")
    assert decode_id(text) == raw


def test_wrong_length_rejected_on_encode():
    with pytest.raises(ValueError):
        encode_id(b"\x01" * 31)


def test_bad_checksum_rejected():
    text = encode_id(bytes(range(32)))
    last = text[-1]
    replacement = "2" if last != "2" else "3"
    with pytest.raises(ValueError):
        decode_id(text[:-1] + replacement)


def test_invalid_character_rejected():
    with pytest.raises(ValueError):
        decode_id("0OIl")


def test_too_short_rejected():
    with pytest.raises(ValueError):
        decode_id("1")