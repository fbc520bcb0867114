"""
金额转俄语文字
"""
from decimal import Decimal

import pytest

from lc_core.services.amount_words import RUBLE_FORMS, amount_to_words_ru, integer_to_words, plural_form


@pytest.mark.parametrize("number, expected", [
    (1, "рубль"),
    (2, "рубля"),
    (5, "рублей"),
    (11, "рублей"),
    (21, "рубль"),
    (112, "рублей"),
    (1004, "рубля"),
])
def test_plural_form(number, expected):
    assert plural_form(number, RUBLE_FORMS) == expected


@pytest.mark.parametrize("number, expected", [
    (0, "ноль"),
    (15, "пятнадцать"),
    (2001, "две тысячи один"),
    (21000, "двадцать одна тысяча"),
    (1000000, "один миллион"),
    (3512742, "три миллиона пятьсот двенадцать тысяч семьсот сорок два"),
])
def test_integer_to_words(number, expected):
    assert integer_to_words(number) == expected


def test_amount_with_kopecks():
    assert amount_to_words_ru(Decimal("1200.50")) == "Одна тысяча двести рублей 50 копеек"


def test_amount_rounds_to_kopecks():
    assert amount_to_words_ru(Decimal("1.015")) == "Один рубль 02 копейки"


def test_zero_amount():
    assert amount_to_words_ru(Decimal("0")) == "Ноль рублей 00 копеек"
