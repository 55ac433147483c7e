"""
Port remapping driven by service annotations.

A service can ask for one of its ports to be bound to a different local port
by carrying an annotation ``<REMAP_ANNOTATION_PREFIX><port name>`` whose value
is an unsigned integer literal. Port names are compared case-insensitively.
Annotations whose value cannot be parsed are skipped; a value of 0 means no
override.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping

import structlog

from .models import DeclaredPort, ServicePort

logger = structlog.get_logger(__name__)

REMAP_ANNOTATION_PREFIX = "localizer.jaredallard.github.com/remap-"
DEFAULT_PORT_BITS = 16

_RADIX_PREFIXES = {"0x": 16, "0o": 8, "0b": 2}
_DIGITS = "0123456789abcdef"


def parse_port_override(value: str, bit_size: int = DEFAULT_PORT_BITS) -> int | None:
    """Parse an unsigned integer literal, returning ``None`` when it is invalid.

    Accepts decimal, ``0x`` hex, ``0o`` octal, ``0b`` binary and legacy
    leading-zero octal, with ``_`` allowed between digits and after a base
    prefix (``8_080``, ``0x_1f90``, ``0_17620``). Signs, whitespace
    and values that do not fit in ``bit_size`` bits are rejected.
    """
    if not value or value[0] in "+-" or value != value.strip():
        return None

    digits = value
    base = 10
    prefix = value[:2].lower()
    if prefix in _RADIX_PREFIXES:
        base = _RADIX_PREFIXES[prefix]
        digits = value[2:]
    elif len(value) > 1 and value[0] == "0":
        base = 8
        digits = value[1:]

    # "_" may follow a consumed base prefix or legacy "0", otherwise only a digit
    if not digits or digits.endswith("_") or "__" in digits:
        return None
    if digits.startswith("_") and digits == value:
        return None

    cleaned = digits.replace("_", "").lower()
    if any(char not in _DIGITS[:base] for char in cleaned):
        return None

    parsed = int(cleaned, base)
    if parsed >= 1 << bit_size:
        return None
    return parsed


def collect_remaps(
    annotations: Mapping[str, str], bit_size: int = DEFAULT_PORT_BITS
) -> dict[str, int]:
    """Return the lower-cased port name -> override mapping found in ``annotations``.

    Keys are visited in sorted order so that when two annotations collapse to
    the same port name the lexicographically greatest key wins.
    """
    remaps: dict[str, int] = {}
    for key in sorted(annotations):
        if not key.startswith(REMAP_ANNOTATION_PREFIX):
            continue

        value = annotations[key]
        override = parse_port_override(value, bit_size)
        if override is None:
            logger.debug("remap.annotation.ignored", annotation=key, value=value)
            continue

        remaps[key[len(REMAP_ANNOTATION_PREFIX) :].lower()] = override
    return remaps


def resolve_ports(
    ports: Iterable[DeclaredPort],
    annotations: Mapping[str, str],
    bit_size: int = DEFAULT_PORT_BITS,
) -> tuple[ServicePort, ...]:
    """Convert declared ports into ``ServicePort`` values, applying remaps."""
    remaps = collect_remaps(annotations, bit_size)

    resolved = []
    for port in ports:
        local_port = port.port
        override = remaps.get(port.name.lower(), 0)
        if override != 0:
            local_port = override

        resolved.append(
            ServicePort(remote_port=port.port, local_port=local_port, name=port.name)
        )
    return tuple(resolved)
