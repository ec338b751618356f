"""Normalization of source metric names into exposition-safe identifiers."""

_REPLACED_CHARACTERS = ".-$()"
_REPLACEMENTS = str.maketrans({c: "_" for c in _REPLACED_CHARACTERS})

_RATE_WINDOWS = {
    "m1_rate": "1m",
    "m5_rate": "5m",
    "m15_rate": "15m",
}


def normalize_name(raw: str) -> str:
    """Map a raw source metric key to a normalized name.

    The key is lowercased, ``.``, ``-``, ``$``, ``(`` and ``)`` become ``_``
    and trailing underscores are trimmed. Leading and interior underscores
    are kept, so ``foo.bar$baz(1)`` becomes ``foo_bar_baz_1``.
    """
    return raw.lower().translate(_REPLACEMENTS).rstrip("_")


def normalize_rate_window(raw: str) -> str:
    """Map a rate field name to its rate window label (``m1_rate`` -> ``1m``)."""
    if raw in _RATE_WINDOWS:
        return _RATE_WINDOWS[raw]
    return raw.removesuffix("_rate")
