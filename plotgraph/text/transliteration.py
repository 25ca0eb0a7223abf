"""Latin -> Batak (Toba) transliteration.

Provides:
    - transliterate_toba(): Latin text to a sequence of Batak code points
    - is_batak(): True when text already contains Batak letters

Rules (lowercased input, scanned left to right):
    - Consonant + vowel -> consonant letter + vowel sign (``a`` is inherent
      and has no sign)
    - Closed syllable at a word end, C1 V C2 -> C1 C2 V-sign PANGOLAT; the
      vowel sign moves onto the killed consonant as in handwritten Toba
    - ``ng`` is the letter NGA; closing a syllable it becomes the consonant
      sign NG after the vowel sign
    - Consonant without a vowel keeps the inherent ``a``
    - Word-initial vowels: ``a`` -> letter A, ``i u e o`` -> letter I/U plus
      the vowel sign
    - Spaces, newlines and anything unmapped pass through unchanged

The function is pure: identical input always yields an identical string
and no state survives between calls.
"""

from __future__ import annotations

import re

CONSONANTS = {
    'h': '\u1BC2',
    'k': '\u1BC3',
    'b': '\u1BC4',
    'p': '\u1BC5',
    'n': '\u1BC6',
    'w': '\u1BC7',
    'g': '\u1BC8',
    'j': '\u1BC9',
    'd': '\u1BCA',
    'r': '\u1BCB',
    'm': '\u1BCC',
    't': '\u1BCD',
    's': '\u1BCE',
    'l': '\u1BCF',
    'y': '\u1BD0',
    'ng': '\u1BD1',
}

VOWEL_SIGNS = {
    'a': '',
    'e': '\u1BE7',
    'i': '\u1BEA',
    'u': '\u1BEB',
    'o': '\u1BEC',
}

LETTER_A = '\u1BC0'
LETTER_I = '\u1BC1'
SIGN_NG = '\u1BF0'
PANGOLAT = '\u1BF2'

# "ng" must be tried before the single letters
_TOKEN_RE = re.compile(r"ng|[a-z]|.", re.DOTALL)


def _tokens(text: str) -> list[str]:
    return _TOKEN_RE.findall(text.lower())


def _is_boundary(tok: str) -> bool:
    return tok == '' or not tok.isalpha()


def transliterate_toba(text: str) -> str:
    """Transliterate Latin *text* into Toba Batak code points.

    Parameters
    ----------
    text : str
        Latin input; case is ignored.

    Returns
    -------
    str
        Batak string, with unmapped characters passed through.

    Examples
    --------
    >>> transliterate_toba("horas") == "\\u1BC2\\u1BEC\\u1BCB\\u1BCE\\u1BF2"
    True
    """
    toks = _tokens(text)
    out: list[str] = []
    i = 0
    n = len(toks)

    def at(k: int) -> str:
        return toks[k] if k < n else ''

    while i < n:
        tok = toks[i]

        if tok in CONSONANTS:
            letter = CONSONANTS[tok]
            vowel = at(i + 1)
            if vowel not in VOWEL_SIGNS:
                out.append(letter)
                i += 1
                continue

            sign = VOWEL_SIGNS[vowel]
            closing = at(i + 2)
            if closing in CONSONANTS and _is_boundary(at(i + 3)):
                if closing == 'ng':
                    out.append(letter + sign + SIGN_NG)
                else:
                    out.append(letter + CONSONANTS[closing] + sign + PANGOLAT)
                i += 3
            else:
                out.append(letter + sign)
                i += 2
        elif tok in VOWEL_SIGNS:
            out.append(LETTER_A if tok == 'a' else LETTER_I + VOWEL_SIGNS[tok])
            i += 1
        else:
            out.append(tok)
            i += 1

    return ''.join(out)


def is_batak(text: str) -> bool:
    """True if *text* contains any character of the Batak block."""
    return any('\u1BC0' <= ch <= '\u1BFF' for ch in text)
