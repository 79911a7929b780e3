import logging
from dataclasses import dataclass

from mpmath.ctx_mp import MPContext


logger = logging.getLogger(__name__)

BITS_PER_DIGIT = 3.5
BIT_MARGIN = 64
TERM_MARGIN = 10
TRANSPORT_MARGIN = 20
# sign, integer digits, radix point, terminator
BUFFER_OVERHEAD = 100


@dataclass(frozen=True)
class PrecisionPlan:
    digits: int
    working_bits: int
    term_count: int
    transport_digits: int

    @property
    def transport_margin(self) -> int:
        return self.transport_digits - self.digits

    @property
    def buffer_size(self) -> int:
        return self.transport_digits + BUFFER_OVERHEAD


def validate_digits(digits: int) -> int:
    digits = int(digits)
    if digits < 1:
        raise ValueError("digits must be >= 1")
    return digits


def plan(
    digits: int,
    bits_per_digit: float = BITS_PER_DIGIT,
    bit_margin: int = BIT_MARGIN,
    term_margin: int = TERM_MARGIN,
    transport_margin: int = TRANSPORT_MARGIN,
) -> PrecisionPlan:
    digits = validate_digits(digits)
    if bit_margin < 0 or term_margin < 0 or transport_margin < 0:
        raise ValueError("margins must be >= 0")
    p = PrecisionPlan(
        digits=digits,
        working_bits=int(digits * bits_per_digit + bit_margin),
        term_count=digits + int(term_margin),
        transport_digits=digits + int(transport_margin),
    )
    logger.debug("plan digits=%d bits=%d terms=%d", p.digits, p.working_bits, p.term_count)
    return p


def make_context(p: PrecisionPlan) -> MPContext:
    ctx = MPContext()
    ctx.prec = p.working_bits
    return ctx
