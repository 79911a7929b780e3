from typing import Optional, Tuple

from mpmath.ctx_mp import MPContext

from .render import fractional_digits


def reference_digits(digits: int, guard: int = 30) -> str:
    ctx = MPContext()
    ctx.dps = int(digits) + int(guard)
    return fractional_digits(+ctx.pi, digits)


def verify_digits(fractional: str, digits: Optional[int] = None) -> Tuple[bool, int]:
    """Compare rendered digits after the point with mpmath's pi.

    Returns ``(ok, index)`` where index is the first mismatching position, or
    -1 when everything matches.
    """
    if digits is None:
        digits = len(fractional)
    digits = int(digits)
    if digits <= 0:
        return True, -1
    actual = fractional[:digits]
    if not actual:
        return False, 0
    expected = reference_digits(len(actual))
    for i, (a, b) in enumerate(zip(actual, expected)):
        if a != b:
            return False, i
    if len(actual) < digits:
        return False, len(actual)
    return True, -1
