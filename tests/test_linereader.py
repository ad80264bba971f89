import pytest

from sim7000sms.constants import MAX_ANSWER
from sim7000sms.linereader import AnswerTooLong, LineReader


def feed_all(reader, data):
    return [reader.feed(char) for char in data]


def test_line_returned_on_line_feed():
    reader = LineReader()
    results = feed_all(reader, "OK\r\n")
    assert results[:3] == [None, None, None]
    assert results[3] == "OK"


def test_cr_and_nul_are_dropped():
    reader = LineReader()
    feed_all(reader, "A\x00T\r")
    assert reader.text() == "AT"
    assert len(reader) == 2


def test_bytes_accepted_as_integers():
    reader = LineReader()
    feed_all(reader, b"+CMT: ,33")
    assert reader.feed(0x0A) == "+CMT: ,33"


def test_text_kept_until_reset():
    reader = LineReader()
    feed_all(reader, "+CSCA: \"+100\",145\n")
    assert reader.text() == "+CSCA: \"+100\",145"
    reader.reset()
    assert reader.text() == ""
    assert reader.feed("\n") == ""


def test_text_accumulates_without_reset():
    reader = LineReader()
    feed_all(reader, "AB\n")
    assert feed_all(reader, "C\n")[-1] == "ABC"


def test_partial_text_visible_before_line_feed():
    reader = LineReader()
    feed_all(reader, ">")
    assert reader.text() == ">"


def test_too_long_answer_raises_and_clears():
    reader = LineReader()
    limit = MAX_ANSWER - 2
    feed_all(reader, "x" * limit)
    assert len(reader) == limit
    with pytest.raises(AnswerTooLong) as info:
        reader.feed("y")
    assert info.value.partial == "x" * limit
    assert reader.text() == ""


def test_line_feed_at_limit_also_raises():
    reader = LineReader(max_answer=5)
    feed_all(reader, "abc")
    with pytest.raises(AnswerTooLong):
        reader.feed("\n")
    assert len(reader) == 0


def test_skipped_characters_never_overflow():
    reader = LineReader(max_answer=5)
    feed_all(reader, "abc")
    assert feed_all(reader, "\r\x00\r") == [None, None, None]
    assert reader.text() == "abc"


def test_invalid_input_rejected():
    reader = LineReader()
    with pytest.raises(ValueError):
        reader.feed("ab")
    with pytest.raises(ValueError):
        LineReader(max_answer=2)