from typing import Iterable

from mpmath.ctx_mp import MPContext


def bbp_denominators(k: int):
    k8 = 8 * int(k)
    return k8 + 1, k8 + 4, k8 + 5, k8 + 6


def bbp_term(k: int, ctx: MPContext):
    """Return the k-th BBP term evaluated at ``ctx.prec`` bits.

    (1/16^k) * (4/(8k+1) - 2/(8k+4) - 1/(8k+5) - 1/(8k+6))
    """
    k = int(k)
    if k < 0:
        raise ValueError("k must be >= 0")
    d1, d4, d5, d6 = bbp_denominators(k)
    s = ctx.mpf(4) / d1 - ctx.mpf(2) / d4 - ctx.mpf(1) / d5 - ctx.mpf(1) / d6
    return s / ctx.mpf(16) ** k


def local_sum(terms: Iterable[int], ctx: MPContext):
    acc = ctx.mpf(0)
    for k in terms:
        acc += bbp_term(k, ctx)
    return acc
