"""
金额转俄语大写（用于发票"Всего к оплате"下方的文字金额）
"""
from decimal import Decimal, ROUND_HALF_UP
from typing import List, Tuple

_ONES_MASC = ["", "один", "два", "три", "четыре", "пять", "шесть", "семь", "восемь", "девять"]
_ONES_FEM = ["", "одна", "две", "три", "четыре", "пять", "шесть", "семь", "восемь", "девять"]
_TEENS = [
    "десять", "одиннадцать", "двенадцать", "тринадцать", "четырнадцать",
    "пятнадцать", "шестнадцать", "семнадцать", "восемнадцать", "девятнадцать",
]
_TENS = [
    "", "", "двадцать", "тридцать", "сорок", "пятьдесят",
    "шестьдесят", "семьдесят", "восемьдесят", "девяносто",
]
_HUNDREDS = [
    "", "сто", "двести", "триста", "четыреста", "пятьсот",
    "шестьсот", "семьсот", "восемьсот", "девятьсот",
]

# (单数, 2-4, 5+), 是否阴性
_SCALES: List[Tuple[Tuple[str, str, str], bool]] = [
    (("", "", ""), False),
    (("тысяча", "тысячи", "тысяч"), True),
    (("миллион", "миллиона", "миллионов"), False),
    (("миллиард", "миллиарда", "миллиардов"), False),
]

RUBLE_FORMS = ("рубль", "рубля", "рублей")
KOPECK_FORMS = ("копейка", "копейки", "копеек")


def plural_form(number: int, forms: Tuple[str, str, str]) -> str:
    """俄语名词的数词变格"""
    n = abs(number) % 100
    if 11 <= n <= 19:
        return forms[2]
    n %= 10
    if n == 1:
        return forms[0]
    if 2 <= n <= 4:
        return forms[1]
    return forms[2]


def _triad_to_words(number: int, feminine: bool) -> List[str]:
    words = []
    hundreds, rest = divmod(number, 100)
    if hundreds:
        words.append(_HUNDREDS[hundreds])
    if 10 <= rest <= 19:
        words.append(_TEENS[rest - 10])
    else:
        tens, ones = divmod(rest, 10)
        if tens:
            words.append(_TENS[tens])
        if ones:
            words.append((_ONES_FEM if feminine else _ONES_MASC)[ones])
    return words


def integer_to_words(number: int) -> str:
    """整数转俄语（阳性），0 -> "ноль" """
    if number == 0:
        return "ноль"
    if number < 0:
        return "минус " + integer_to_words(-number)

    words: List[str] = []
    scale = 0
    while number > 0:
        number, triad = divmod(number, 1000)
        if triad:
            if scale >= len(_SCALES):
                raise ValueError("number is too large")
            forms, feminine = _SCALES[scale]
            part = _triad_to_words(triad, feminine)
            if scale:
                part.append(plural_form(triad, forms))
            words = part + words
        scale += 1
    return " ".join(words)


def amount_to_words_ru(amount: Decimal) -> str:
    """
    金额转文字

    >>> amount_to_words_ru(Decimal("1200.50"))
    'Одна тысяча двести рублей 50 копеек'
    """
    value = Decimal(amount).quantize(Decimal("0.01"), rounding=ROUND_HALF_UP)
    rubles = int(value)
    kopecks = int((value - rubles) * 100)
    text = f"{integer_to_words(rubles)} {plural_form(rubles, RUBLE_FORMS)} {kopecks:02d} {plural_form(kopecks, KOPECK_FORMS)}"
    return text[0].upper() + text[1:]
