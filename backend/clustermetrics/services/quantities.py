"""
Kubernetes resource quantity parsing.

Converts quantity strings from the metrics and core APIs into integer
millicores / bytes. Both resources share one suffix table, as in the
Kubernetes API machinery, and fractions round up like ``MilliValue()``
and ``Value()``.
"""

import math
from typing import Union

Quantity = Union[str, int, float, None]

# multipliers to base units (cores or bytes); two-letter suffixes first
_SUFFIXES = {
    "Ki": 1024,
    "Mi": 1024**2,
    "Gi": 1024**3,
    "Ti": 1024**4,
    "Pi": 1024**5,
    "Ei": 1024**6,
    "n": 1e-9,
    "u": 1e-6,
    "m": 1e-3,
    "k": 10**3,
    "M": 10**6,
    "G": 10**9,
    "T": 10**12,
    "P": 10**15,
    "E": 10**18,
}


def _ceil(number: float) -> int:
    # drop float noise such as 300.00000000000006 before rounding up
    return math.ceil(round(number, 6))


def _parse_base_units(s: str) -> float:
    """Return the quantity in base units; raises ValueError when unparseable."""
    for suffix, multiplier in _SUFFIXES.items():
        if s.endswith(suffix):
            return float(s[: -len(suffix)]) * multiplier
    return float(s)


def parse_cpu_to_mcores(value: Quantity) -> int:
    """
    Parse a CPU quantity into millicores.

    Args:
        value: "250m", "2", "0.5", "1500000n", "1k", or a number of cores

    Returns:
        Millicores, 0 when the value is empty or unparseable
    """
    if value is None:
        return 0
    if isinstance(value, (int, float)):
        return _ceil(float(value) * 1000)

    s = str(value).strip()
    if not s:
        return 0

    try:
        return _ceil(_parse_base_units(s) * 1000)
    except ValueError:
        return 0


def parse_memory_to_bytes(value: Quantity) -> int:
    """
    Parse a memory quantity into bytes.

    Args:
        value: "8Gi", "512Mi", "1024Ki", "1G", "1500m", "1073741824"

    Returns:
        Bytes, 0 when the value is empty or unparseable
    """
    if value is None:
        return 0
    if isinstance(value, (int, float)):
        return _ceil(value)

    s = str(value).strip()
    if not s:
        return 0

    try:
        return _ceil(_parse_base_units(s))
    except ValueError:
        return 0
