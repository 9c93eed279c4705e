"""Work out which country a proxy node belongs to from its name."""

from __future__ import annotations

from types import MappingProxyType
from typing import Iterable, List, Mapping, Tuple

from .country_names import (
    COUNTRY_CHINESE_NAME,
    COUNTRY_ENGLISH_NAME,
    COUNTRY_ISO,
    FLAG_CODE_ALIASES,
)

OTHER_REGION = "其他地区"
"""Label for names that match no known country."""

_REGIONAL_INDICATOR_A = 0x1F1E6
_SPLIT_CHARS = ("-", "_", " ")


def flag_for(code: str) -> str:
    """The flag emoji for a two-letter country code."""
    letters = code.upper()
    if len(letters) != 2 or not all("A" <= ch <= "Z" for ch in letters):
        raise ValueError(f"not a two-letter country code: {code!r}")
    return "".join(chr(_REGIONAL_INDICATOR_A + ord(ch) - ord("A")) for ch in letters)


def _build_flags() -> Mapping[str, str]:
    flags = {flag_for(code): label for code, label in COUNTRY_ISO.items()}
    for alias, code in FLAG_CODE_ALIASES.items():
        flags[flag_for(alias)] = COUNTRY_ISO[code]
    return MappingProxyType(flags)


COUNTRY_FLAG: Mapping[str, str] = _build_flags()
"""Flag emoji to label."""


def _longest_first(table: Mapping[str, str]) -> Tuple[Tuple[str, str], ...]:
    # Longer keys first, so "南苏丹" wins over "苏丹" and "Nigeria" over "Niger".
    return tuple(sorted(table.items(), key=lambda item: len(item[0]), reverse=True))


_FLAG_ITEMS = _longest_first(COUNTRY_FLAG)
_CHINESE_ITEMS = _longest_first(COUNTRY_CHINESE_NAME)
_ISO_ITEMS = _longest_first(COUNTRY_ISO)
_ENGLISH_ITEMS = _longest_first(COUNTRY_ENGLISH_NAME)


def _code_candidates(country_key: str) -> List[str]:
    candidates = []
    for sep in _SPLIT_CHARS:
        candidates.extend(
            part for part in country_key.split(sep) if len(part.encode("utf-8")) == 2
        )
    return candidates


def _first_contained(country_key: str, items: Iterable[Tuple[str, str]]) -> str:
    return next((label for key, label in items if key in country_key), "")


def get_country_name(country_key: str) -> str:
    """The country label for a node name, or ``其他地区`` when none matches.

    Flags are tried first, then Chinese names, then two-letter codes (first as
    separate words, then anywhere in the name), then English names.
    """
    for items, is_iso in (
        (_FLAG_ITEMS, False),
        (_CHINESE_ITEMS, False),
        (_ISO_ITEMS, True),
        (_ENGLISH_ITEMS, False),
    ):
        if is_iso:
            for candidate in _code_candidates(country_key):
                label = COUNTRY_ISO.get(candidate.upper())
                if label is not None:
                    return label
        label = _first_contained(country_key, items)
        if label:
            return label
    return OTHER_REGION