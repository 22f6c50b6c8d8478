import pytest

from anny.emojis import number_as_emoji


def test_ten_has_its_own_keycap():
    assert number_as_emoji(10) == "\U0001f51f"


def test_single_digit_keycap():
    assert number_as_emoji(3) == "3\u20e3"


@pytest.mark.parametrize("number", range(10))
def test_digits_start_with_the_digit(number):
    emoji = number_as_emoji(number)
    assert emoji == str(number) + "\u20e3"


@pytest.mark.parametrize("number", [-1, 11, 100])
def test_out_of_range_is_empty(number):
    assert number_as_emoji(number) == ""


def test_all_supported_numbers_are_distinct():
    emojis = [number_as_emoji(n) for n in range(11)]
    assert len(set(emojis)) == 11