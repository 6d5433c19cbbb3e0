"""American Soundex encoding.

Words that sound alike map to the same four-character code: the first
letter followed by three digits derived from the remaining consonants.
The rules follow the Apache Commons Codec implementation so that codes
written by other tools against the same collection stay compatible:

    - Only ASCII letters are considered; everything else is dropped.
    - Vowels and Y separate consonants and reset the previous digit.
    - H and W are skipped without resetting the previous digit.
    - Adjacent consonants with the same digit are coded once, including
      a consonant that repeats the first letter's digit.

Input without any letter encodes to the empty string, which callers treat
as "no signal".

Example:
    >>> encode("Robert"), encode("Rupert")
    ('R163', 'R163')
    >>> encode("!!!")
    ''
"""

SOUNDEX_LENGTH = 4

# Digit per letter A..Z; "0" marks vowels, Y, H and W
_SOUNDEX_DIGITS = "01230120022455012623010202"

_SILENT = frozenset("HW")


def _clean(token: str) -> str:
    return "".join(c for c in token.upper() if "A" <= c <= "Z")


def encode(token: str) -> str:
    """Soundex code for a single token.

    Args:
        token: A word; callers split text on whitespace first.

    Returns:
        Four-character code, or "" when the token has no letters.
    """
    letters = _clean(token or "")
    if not letters:
        return ""

    first = letters[0]
    code = [first]
    last_digit = _SOUNDEX_DIGITS[ord(first) - ord("A")]

    for c in letters[1:]:
        if c in _SILENT:
            continue
        digit = _SOUNDEX_DIGITS[ord(c) - ord("A")]
        if digit != "0" and digit != last_digit:
            code.append(digit)
            if len(code) == SOUNDEX_LENGTH:
                break
        last_digit = digit

    return "".join(code).ljust(SOUNDEX_LENGTH, "0")
