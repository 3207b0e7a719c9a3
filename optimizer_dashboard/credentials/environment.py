"""
Environment variable lookup with split-value reconstruction.

Some platforms cap the size of a single environment variable, so a service
account JSON may be stored as GCP_SERVICE_ACCOUNT_KEY_PART1,
GCP_SERVICE_ACCOUNT_KEY_PART2, ... (or GCP_SERVICE_ACCOUNT_KEY_1, _2, ...).
"""

import os
import re
from collections.abc import Iterable, Mapping
from dataclasses import dataclass

_SEPARATORS = re.compile(r"^[\s_-]+")
_DIGITS = re.compile(r"^\d+$")


@dataclass(frozen=True)
class EnvValue:
    """A trimmed value and the variable (or split group) it came from."""

    name: str
    value: str
    split: bool = False


def _environ(environ: Mapping[str, str] | None) -> Mapping[str, str]:
    return os.environ if environ is None else environ


def _part_index(suffix: str) -> int | None:
    """Parse '_PART2', '-part_02', '_3' style suffixes into an index."""
    trimmed = _SEPARATORS.sub("", suffix)
    if not trimmed:
        return None

    if trimmed.upper().startswith("PART"):
        trimmed = _SEPARATORS.sub("", trimmed[4:])

    if trimmed and _DIGITS.match(trimmed):
        return int(trimmed)
    return None


def combine_split_env(base_name: str, environ: Mapping[str, str] | None = None) -> str | None:
    """
    Reassemble a value split across numbered variables.

    Parts are concatenated in ascending index order with no separator.
    Zero-padded and duplicate indices are accepted as-is; the order among
    duplicates follows environment iteration order and is not defined.
    """
    parts: list[tuple[int, str]] = []

    for env_name, env_value in _environ(environ).items():
        if not env_value or not env_name.startswith(base_name):
            continue
        suffix = env_name[len(base_name):]
        if not suffix:
            continue
        index = _part_index(suffix)
        if index is not None:
            parts.append((index, env_value))

    if not parts:
        return None

    parts.sort(key=lambda part: part[0])
    return "".join(value for _, value in parts)


def lookup(names: Iterable[str], environ: Mapping[str, str] | None = None) -> EnvValue | None:
    """
    Return the first non-blank value among ``names``.

    Direct variables across the whole list take priority; split-part
    reconstruction is only tried once every direct name has missed.
    """
    env = _environ(environ)
    names = tuple(names)

    for name in names:
        value = env.get(name)
        if value and value.strip():
            return EnvValue(name=name, value=value.strip())

    for name in names:
        combined = combine_split_env(name, env)
        if combined and combined.strip():
            return EnvValue(name=f"{name} (split parts)", value=combined.strip(), split=True)

    return None


def first_value(names: Iterable[str], environ: Mapping[str, str] | None = None) -> str | None:
    """Shorthand for lookup() when only the value matters."""
    found = lookup(names, environ)
    return found.value if found else None
