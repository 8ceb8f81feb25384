import math

import pytest

from serial_plotter.stream import MissingTimestampError, decode_line, encode_command


def test_decode_line_with_time_and_samples():
    decoded = decode_line("Time:1.25,DataA:3.5,DataB:-2\n")
    assert decoded.timestamp == 1.25
    assert decoded.samples == {"DataA": 3.5, "DataB": -2.0}
    assert decoded.names() == ("DataA", "DataB")
    assert decoded.skipped == ()


def test_decode_line_trims_keys_and_crlf():
    decoded = decode_line(" Time : 2 , Speed :10\r\n")
    assert decoded.timestamp == 2.0
    assert decoded.samples == {"Speed": 10.0}


def test_time_field_need_not_be_first():
    decoded = decode_line("A:1,Time:7,B:2")
    assert decoded.timestamp == 7.0
    assert list(decoded.samples) == ["A", "B"]


def test_missing_time_raises():
    with pytest.raises(MissingTimestampError) as info:
        decode_line("DataA:1,DataB:2")
    assert "DataA" in info.value.line


def test_time_key_is_case_sensitive():
    with pytest.raises(MissingTimestampError):
        decode_line("time:1,A:2")


def test_unparseable_time_is_missing():
    with pytest.raises(MissingTimestampError):
        decode_line("Time:abc,A:2")


def test_empty_line_is_missing_timestamp():
    with pytest.raises(MissingTimestampError):
        decode_line("\n")


def test_malformed_field_is_skipped():
    decoded = decode_line("Time:1,Garbage")
    assert decoded.timestamp == 1.0
    assert decoded.samples == {}
    assert decoded.skipped == ("Garbage",)


def test_field_with_two_colons_is_skipped():
    decoded = decode_line("Time:1,A:1:2,B:3")
    assert decoded.samples == {"B": 3.0}
    assert decoded.skipped == ("A:1:2",)


def test_bad_number_becomes_nan():
    decoded = decode_line("Time:1,A:oops,B:4")
    assert math.isnan(decoded.samples["A"])
    assert decoded.samples["B"] == 4.0


def test_duplicate_key_last_wins():
    decoded = decode_line("Time:1,A:1,A:2")
    assert decoded.samples == {"A": 2.0}


def test_encode_command():
    assert encode_command("Gain", 5) == "Gain:5"
    assert encode_command(" Gain ", 2.5) == "Gain:2.5"
    with pytest.raises(ValueError):
        encode_command("a:b", 1)


@pytest.mark.parametrize("value", ["inf", "-inf", "nan"])
def test_non_finite_time_is_missing(value):
    with pytest.raises(MissingTimestampError):
        decode_line(f"Time:{value},A:1")
