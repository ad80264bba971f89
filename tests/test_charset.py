import pytest

from sim7000sms.charset import (
    gsm7_equivalent_length,
    gsm7_message_length,
    ucs2_message_length,
)


@pytest.mark.parametrize("char", ["A", "z", " ", "0", "@", "\n", "\r", "_", "Z"])
def test_basic_ascii_is_one(char):
    assert gsm7_equivalent_length(ord(char), 0, 0) == 1


@pytest.mark.parametrize("char", ["[", "]", "^", "\\", "{", "}", "~", "|", "\f"])
def test_extension_table_is_two(char):
    assert gsm7_equivalent_length(ord(char), 0, 0) == 2


@pytest.mark.parametrize("char", ["`", "\t", "\x7f"])
def test_unsupported_ascii_is_zero(char):
    assert gsm7_equivalent_length(ord(char), 0, 0) == 0


@pytest.mark.parametrize("char", ["é", "è", "ä", "Ñ", "ß", "à", "£", "¥", "§", "¿", "¡"])
def test_two_byte_latin_is_one(char):
    c1, c2 = char.encode("utf-8")
    assert gsm7_equivalent_length(c1, c2, 0) == 1


@pytest.mark.parametrize("char", ["À", "ê", "ç", "¢"])
def test_two_byte_outside_table_is_zero(char):
    c1, c2 = char.encode("utf-8")
    assert gsm7_equivalent_length(c1, c2, 0) == 0


def test_euro_sign_is_two():
    c1, c2, c3 = "€".encode("utf-8")
    assert gsm7_equivalent_length(c1, c2, c3) == 2


def test_plain_ascii_message_length_equals_character_count():
    text = "Hello world 123"
    assert gsm7_message_length(text) == len(text)


def test_message_length_sums_character_lengths():
    text = "a[b]c"
    expected = sum(gsm7_equivalent_length(ord(c), 0, 0) for c in text)
    assert gsm7_message_length(text) == expected


def test_bytes_and_str_agree():
    text = "Price {10}"
    assert gsm7_message_length(text) == gsm7_message_length(text.encode("utf-8"))


@pytest.mark.parametrize("text", ["café", "100€", "`quote`", "日本"])
def test_non_ascii_or_unsupported_switches_to_ucs2(text):
    assert gsm7_message_length(text) == 0


def test_empty_message():
    assert gsm7_message_length("") == 0
    assert ucs2_message_length("") == 0


def test_stops_at_nul():
    assert gsm7_message_length("abc\x00`") == gsm7_message_length("abc")
    assert ucs2_message_length("abc\x00def") == ucs2_message_length("abc")


@pytest.mark.parametrize("text", ["hello", "héllo", "日本語", "mix é€ z"])
def test_ucs2_length_is_twice_character_count(text):
    assert ucs2_message_length(text) == 2 * len(text)


def test_ucs2_counts_four_byte_sequence_once():
    assert ucs2_message_length("😀") == ucs2_message_length("a")


def test_ucs2_bytes_and_str_agree():
    text = "grüße"
    assert ucs2_message_length(text) == ucs2_message_length(text.encode("utf-8"))