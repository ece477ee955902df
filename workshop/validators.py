"""Payment detail checks for the online shop (card and GCash numbers)."""
import re

GCASH_NUMBER_RE = re.compile(r'^(09|\+639|9)\d{9}$')


def _digits(value):
    return re.sub(r'[\s-]', '', str(value or ''))


def is_valid_card_number(number):
    """Luhn checksum over a 13-19 digit card number; spaces and dashes are ignored."""
    digits = _digits(number)
    if not digits.isdigit() or not 13 <= len(digits) <= 19:
        return False
    total = 0
    for i, ch in enumerate(reversed(digits)):
        n = int(ch)
        if i % 2 == 1:
            n *= 2
            if n > 9:
                n -= 9
        total += n
    return total % 10 == 0


def is_valid_gcash_number(number):
    """Philippine mobile number: 09XXXXXXXXX, +639XXXXXXXXX or 9XXXXXXXXX."""
    return bool(GCASH_NUMBER_RE.match(_digits(number)))


def mask_number(value, visible=4):
    """Keep only the last `visible` characters, e.g. '************1111'."""
    raw = _digits(value)
    if not raw:
        return ''
    if len(raw) <= visible:
        return raw
    return '*' * (len(raw) - visible) + raw[-visible:]
