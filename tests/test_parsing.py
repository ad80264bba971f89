from datetime import datetime, timezone

import pytest

from sim7000sms.parsing import (
    REGISTERED_STATES,
    NetworkTime,
    parse_creg,
    parse_network_time,
    parse_sca,
)


def test_creg_query_answer_skips_mode():
    state = parse_creg("+CREG: 2,1", after_query=True)
    assert state == "1"
    assert state in REGISTERED_STATES


def test_creg_unsolicited_state():
    state = parse_creg("+CREG: 5", after_query=False)
    assert state == "5"
    assert state in REGISTERED_STATES


def test_creg_not_registered():
    state = parse_creg("+CREG: 0", after_query=False)
    assert state == "0"
    assert state not in REGISTERED_STATES


def test_creg_absent():
    assert parse_creg("OK", after_query=False) is None


def test_creg_truncated_line():
    assert parse_creg("+CREG: ", after_query=True) == ""


def test_network_time_from_modem_example():
    result = parse_network_time('*PSUTTZ: 25/04/02,09:49:27","+08",1')
    assert result == NetworkTime(25, 4, 2, 9, 49, 27, 8, 1)


def test_network_time_to_unix_matches_calendar():
    result = parse_network_time('*PSUTTZ: 25/04/02,09:49:27","+08",1')
    expected = datetime(2025, 4, 2, 9, 49, 27, tzinfo=timezone.utc).timestamp()
    assert result.to_unix() == int(expected)


def test_network_time_negative_zone():
    result = parse_network_time('*PSUTTZ: 24/12/31,23:59:59","-04",0')
    assert result.quarters_to_utc == -4
    assert result.is_dst == 0
    assert (result.year, result.month, result.day) == (24, 12, 31)


def test_network_time_absent():
    assert parse_network_time("+CREG: 1") is None


def test_network_time_illegal_character():
    with pytest.raises(ValueError):
        parse_network_time('*PSUTTZ: 25/04/02 09:49:27","+08",1')


def test_network_time_missing_fields():
    with pytest.raises(ValueError):
        parse_network_time("*PSUTTZ: 25/04/02,09:49")


def test_network_time_too_long():
    with pytest.raises(ValueError):
        parse_network_time("*PSUTTZ: " + "1," * 20)


def test_sca_with_plus():
    assert parse_sca('+CSCA: "+12345",145') == "+12345"


def test_sca_digits_only():
    assert parse_sca('+CSCA: "12345",129') == "12345"


@pytest.mark.parametrize(
    "answer",
    [
        "OK",
        "+CSCA: 12345",
        '+CSCA: ""',
        '+CSCA: "+12a45",145',
        '+CSCA: "1+2345",145',
        '+CSCA: "+' + "1" * 30 + '",145',
    ],
)
def test_sca_errors(answer):
    with pytest.raises(ValueError):
        parse_sca(answer)