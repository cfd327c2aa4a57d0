"""
Tests for the address translator.
"""

import pytest

from midiosc.model import NoteOn, NoteOff, ControlChange
from midiosc.translator import translate, address_for, encode_value, raw_value


class TestAddresses:
    """Address depends only on channel and note/controller."""

    def test_note_address(self):
        assert address_for(NoteOn(0, 60, 127)) == "/note/0/60"

    def test_note_on_and_off_share_address(self):
        assert address_for(NoteOn(3, 40, 10)) == address_for(NoteOff(3, 40))

    def test_cc_address(self):
        assert address_for(ControlChange(1, 7, 64)) == "/cc/1/7"

    def test_address_independent_of_value(self):
        assert address_for(ControlChange(1, 7, 0)) == address_for(ControlChange(1, 7, 127))


class TestValues:
    """Value source and encoding."""

    def test_raw_values(self):
        assert raw_value(NoteOn(0, 60, 99)) == 99
        assert raw_value(NoteOff(0, 60)) == 0
        assert raw_value(ControlChange(0, 1, 42)) == 42

    def test_encode_raw_passes_int_through(self):
        value = encode_value(64, normalize=False)
        assert value == 64
        assert isinstance(value, int)

    def test_encode_normalized(self):
        assert encode_value(0, normalize=True) == 0.0
        assert encode_value(127, normalize=True) == 1.0
        assert isinstance(encode_value(64, normalize=True), float)


class TestTranslate:
    """translate() end to end."""

    def test_note_on_raw(self):
        assert translate(NoteOn(0, 60, 127), normalize=False) == ("/note/0/60", 127)

    def test_note_on_normalized(self):
        assert translate(NoteOn(0, 60, 127), normalize=True) == ("/note/0/60", 1.0)

    def test_cc_normalized(self):
        address, value = translate(ControlChange(1, 7, 64), normalize=True)
        assert address == "/cc/1/7"
        assert value == pytest.approx(64 / 127.0)

    @pytest.mark.parametrize("normalize,expected", [(False, 0), (True, 0.0)])
    def test_note_off_always_zero(self, normalize, expected):
        address, value = translate(NoteOff(2, 40), normalize=normalize)
        assert address == "/note/2/40"
        assert value == expected
        assert type(value) is type(expected)
