import io

import pytest

from tinyunix.printf import fprintf, printf, sprintf


def test_plain_text_passes_through():
    assert sprintf("hello world\n") == "hello world\n"


def test_signed_decimal():
    assert sprintf("%d", 42) == "42"
    assert sprintf("%d", -42) == "-42"
    assert sprintf("a%db", 0) == "a0b"


def test_hex_is_uppercase_and_round_trips():
    for value in (1, 255, 0xABCDEF, 0x7FFFFFFF):
        text = sprintf("%x", value)
        assert text == text.upper()
        assert int(text, 16) == value


def test_unsigned_of_negative_wraps_to_32_bits():
    assert int(sprintf("%u", -1)) == 2**32 - 1


def test_long_values_are_narrowed_to_32_bits():
    assert sprintf("%ld", 2**32 + 7) == "7"
    assert sprintf("%lu", 2**32 + 9) == "9"


def test_long_long_modifier_consumes_its_letters():
    assert sprintf("%lld!", 5) == "5!"
    assert sprintf("%llx!", 10) == sprintf("%x", 10) + "!"


def test_pointer_format():
    assert sprintf("%p", 0) == "0x" + "0" * 16
    text = sprintf("%p", 0xDEADBEEF)
    assert len(text) == 18
    assert text.startswith("0x")
    assert int(text, 16) == 0xDEADBEEF


def test_string_and_null_string():
    assert sprintf("<%s>", "abc") == "<abc>"
    assert sprintf("%s", None) == "(null)"


def test_percent_and_unknown_directive():
    assert sprintf("100%%") == "100%"
    assert sprintf("%q") == "%q"
    assert sprintf("%l") == "%l"


def test_trailing_percent_is_dropped():
    assert sprintf("abc%") == "abc"


def test_missing_argument_raises():
    with pytest.raises(TypeError):
        sprintf("%d %d", 1)


def test_fprintf_writes_to_stream():
    stream = io.StringIO()
    fprintf(stream, "%s=%d\n", "x", 3)
    assert stream.getvalue() == sprintf("%s=%d\n", "x", 3)


def test_printf_writes_to_stdout(capsys):
    printf("%s %d\n", "value", 12)
    assert capsys.readouterr().out == "value 12\n"