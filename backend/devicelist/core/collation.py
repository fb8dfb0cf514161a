"""Locale-aware name ordering.

Sort keys come from the Unicode Collation Algorithm with the default
(root) collation table: base letters first, then accents, then case with
lowercase ahead of uppercase.
"""

import unicodedata
from functools import lru_cache

from pyuca import Collator


@lru_cache(maxsize=1)
def _collator() -> Collator:
    # Loads the DUCET table once per process.
    return Collator()


def collation_key(name: str) -> tuple[int, ...]:
    return _collator().sort_key(unicodedata.normalize("NFD", name))
