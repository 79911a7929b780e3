from mpmath import mp


GROUP = 10
GROUPS_PER_LINE = 5


def fixed_point(x, frac_digits: int) -> str:
    """``[-]I.F`` with at least ``frac_digits`` digits after the point."""
    frac_digits = int(frac_digits)
    int_digits = len(str(abs(int(x))))
    s = mp.nstr(x, int_digits + frac_digits, strip_zeros=False, min_fixed=-10**9, max_fixed=10**9)
    if "e" in s or "E" in s:
        raise ValueError("value has no fixed-point form: " + s)
    if "." not in s:
        s = s + "."
    head, tail = s.split(".", 1)
    if head in {"", "-"}:
        head = head + "0"
    if len(tail) < frac_digits:
        tail = tail + ("0" * (frac_digits - len(tail)))
    return head + "." + tail


def _scaled_floor(value, digits: int) -> int:
    # floor(|value| * 10**digits) from the binary mantissa, no rounding
    man, exp = abs(value).man_exp
    scaled = int(man) * 10**digits
    if exp >= 0:
        return scaled << exp
    return scaled >> -exp


def integer_part(value) -> str:
    head = str(abs(int(value)))
    return "-" + head if value < 0 else head


def fractional_digits(value, digits: int) -> str:
    """Exactly ``digits`` digits after the point, truncated."""
    digits = int(digits)
    if digits < 1:
        raise ValueError("digits must be >= 1")
    return str(_scaled_floor(value, digits) % 10**digits).zfill(digits)


def group_digits(frac: str) -> str:
    blocks = [frac[i : i + GROUP] for i in range(0, len(frac), GROUP)]
    lines = [" ".join(blocks[i : i + GROUPS_PER_LINE]) for i in range(0, len(blocks), GROUPS_PER_LINE)]
    return "\n  ".join(lines)


def render_grouped(value, digits: int) -> str:
    head = integer_part(value)
    return head + "." + group_digits(fractional_digits(value, digits))
