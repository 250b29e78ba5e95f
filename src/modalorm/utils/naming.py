"""
Naming utilities for ModalORM.
"""

import re


_NON_WORD_RE = re.compile(r"\W+")
_SEPARATOR_RE = re.compile(r"[_\s]+")


def sanitize_identifier(name: str) -> str:
    """
    Collapse every run of non-word characters into ``_`` so the result can
    be embedded in a bound-parameter name.
    """
    return _NON_WORD_RE.sub("_", name)


def snake_to_camel(name: str) -> str:
    """
    Convert ``snake_case`` table names to ``CamelCase`` class names.
    """
    parts = _SEPARATOR_RE.split(sanitize_identifier(name))
    return "".join(part[:1].upper() + part[1:] for part in parts if part)
