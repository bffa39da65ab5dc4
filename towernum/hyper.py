#
# Hyperoperations on layered numbers: tetration, pentation, hexation, the
# super-logarithm and the Lambert W function
#
# (c) The towernum developers 2026.  All rights reserved.
#

from math import ceil, e, log

import structlog

from .context import (
    OP_TETRATE, OP_PENTATE, OP_HEXATE, OP_SLOG, OP_LAMBERTW,
    InvalidHeight, InvalidLambertW, InvalidSuperLogarithm,
)
from .lambert import BRANCH_POINT, lambertw as float_lambertw, lambertw_of_log
from .layered import (
    LayeredNumber, ONE, TEN,
    _apply_operator, _divide, _log10_magnitude, _multiply, _power, _super_log,
)


__all__ = ('tetrate', 'pentate', 'hexate', 'super_log', 'lambertw', 'infinite_tower',
           'GRAHAM1', 'ITERATION_LIMIT', 'SLOG_ITERATION_LIMIT', 'CONVERGENT_MIN',
           'CONVERGENT_MAX')

logger = structlog.get_logger(__name__)

# Divergent bases anchor their closed form at no lower height than this
ITERATION_LIMIT = 10
# Hard cap on iteration for super-logarithms and for bases whose towers converge
SLOG_ITERATION_LIMIT = 1000

# Infinite towers b^b^b^... converge exactly for bases in [e^-e, e^(1/e)]
CONVERGENT_MIN = e ** -e
CONVERGENT_MAX = e ** (1 / e)

# Distance from the fixed point at which the Koenigs linearization is applied
KOENIGS_DISTANCE = 1e-6

LN10 = LayeredNumber.from_float(log(10))


def _is_divergent(base):
    return not base.is_plain() or base.multiplicand > CONVERGENT_MAX


def infinite_tower(base):
    '''Return b^b^b^..., the fixed point omega = -W(-ln b) / ln b, for a float base in
    [e^-e, e^(1/e)].'''
    if not CONVERGENT_MIN <= base <= CONVERGENT_MAX:
        raise ValueError(f'the infinite tower of {base!r} does not converge')
    ln_base = log(base)
    if ln_base == 0:
        return 1.0
    return -float_lambertw(-ln_base) / ln_base


def _koenigs_start(base, omega):
    '''Iterate the tower from 1 toward omega.  Returns (value, steps).'''
    value = 1.0
    steps = 0
    while abs(value - omega) > KOENIGS_DISTANCE and steps < SLOG_ITERATION_LIMIT:
        value = base ** value
        steps += 1
    return value, steps


def _fractional_tower(base, fraction):
    '''Return base^^fraction for a float base in (0, e^(1/e)] and fraction in (0, 1].

    Bases in (1, e^(1/e)) use first-order Koenigs regular iteration about the attracting
    fixed point; other bases use the linear approximation base^fraction.'''
    if fraction == 1:
        return base
    if not 1 < base < CONVERGENT_MAX:
        return base ** fraction
    omega = infinite_tower(base)
    multiplier = log(omega)
    if not 0 < multiplier < 1:
        return base ** fraction

    # Linearize near omega, then map back with log_base
    ln_base = log(base)
    value, steps = _koenigs_start(base, omega)
    result = omega + multiplier ** fraction * (value - omega)
    for _ in range(steps):
        result = log(result) / ln_base
    return result


def _fractional_height(base, value):
    '''The inverse of _fractional_tower: return f in (0, 1] with base^^f == value, for value
    in (1, base].'''
    if value >= base:
        return 1.0
    ln_base = log(base)
    if base < CONVERGENT_MAX:
        omega = infinite_tower(base)
        multiplier = log(omega)
        if 0 < multiplier < 1:
            start, steps = _koenigs_start(base, omega)
            for _ in range(steps):
                value = base ** value
            ratio = (value - omega) / (start - omega)
            if ratio > 0:
                return log(ratio) / log(multiplier)
    return log(value) / ln_base


def _lower(rank, base, value, context):
    '''Apply the next lower operation: base^value for tetration, base^^value for pentation
    and base^^^value for hexation.'''
    if rank == 1:
        return _power(base, value, context)
    return _hyperoperate(rank - 1, base, value, _OP_NAMES[rank - 1], context)


def _tower_offset(rank, base):
    '''Return (anchor, tower, offset) for a divergent base.

    tower is the rank-th hyperoperation of base at the integer height anchor, the first
    height from ITERATION_LIMIT on whose value is beyond float range.  offset is
    sl_(rank-1)(tower) - anchor: from anchor on, base towers of height h are taken as
    base-10 towers of height h + offset.  Tetration and the super-logarithm both go through
    here so that each inverts the other.
    '''
    tower = base
    anchor = 1
    while anchor < ITERATION_LIMIT or tower.is_plain():
        if anchor >= SLOG_ITERATION_LIMIT:
            logger.warning('hyper.iteration_limit', op=_OP_NAMES[rank], iterations=anchor)
            break
        tower = _lower(rank, base, tower, None)
        anchor += 1
    return anchor, tower, _super_log(rank - 1, tower).sub(anchor)


def _hyperoperate(rank, base, height, op_name, context):
    base = LayeredNumber.from_value(base)
    height = LayeredNumber.from_value(height)
    op_tuple = (op_name, base, height)

    if base.sign <= 0:
        return InvalidHeight(op_tuple).signal(context)
    if height.sign < 0 and not height.is_plain():
        return InvalidHeight(op_tuple).signal(context)
    if height.is_plain() and height.to_number() <= 0:
        h = height.to_number()
        if h < -1:
            return InvalidHeight(op_tuple).signal(context)
        # Linear approximation on (-1, 0]
        return LayeredNumber.from_float(h + 1)
    if base == ONE:
        return ONE
    if base == TEN:
        return _apply_operator(rank, height)

    divergent = _is_divergent(base)
    if divergent and (not height.is_plain() or height.to_number() > ITERATION_LIMIT):
        anchor, _tower, offset = _tower_offset(rank, base)
        if not height.is_plain() or height.to_number() > anchor:
            # b^^h ~= 10^^(h + offset) past the anchor, and likewise at higher ranks
            logger.debug('hyper.closed_form', op=op_name, anchor=anchor)
            return _apply_operator(rank, height.add(offset))

    if height.is_plain():
        h = height.to_number()
        steps = ceil(h) - 1
        fraction = h - steps
    else:
        steps, fraction = None, 1.0

    if rank == 1 and not divergent:
        value = LayeredNumber.from_float(_fractional_tower(base.multiplicand, fraction))
    else:
        value = _power(base, LayeredNumber.from_float(fraction), context)

    done = 0
    while steps is None or done < steps:
        if not divergent and done >= SLOG_ITERATION_LIMIT:
            logger.warning('hyper.iteration_limit', op=op_name, iterations=done)
            break
        new_value = _lower(rank, base, value, context)
        done += 1
        if not divergent and new_value == value:
            break
        value = new_value
    return value


_OP_NAMES = {1: OP_TETRATE, 2: OP_PENTATE, 3: OP_HEXATE}


def tetrate(base, height, context=None):
    '''Return base^^height, a tower of height copies of base.'''
    return _hyperoperate(1, base, height, OP_TETRATE, context)


def pentate(base, height, context=None):
    '''Return base^^^height.'''
    return _hyperoperate(2, base, height, OP_PENTATE, context)


def hexate(base, height, context=None):
    '''Return base^^^^height.'''
    return _hyperoperate(3, base, height, OP_HEXATE, context)


def _log_base(value, log10_base):
    return _divide(_log10_magnitude(value), log10_base, None, None)


def _divergent_super_log(value, base):
    _anchor, tower, offset = _tower_offset(1, base)
    if value >= tower:
        return _super_log(0, value).sub(offset)
    log10_base = _log10_magnitude(base)
    count = 0
    while value > ONE:
        if count >= SLOG_ITERATION_LIMIT:
            logger.warning('hyper.iteration_limit', op=OP_SLOG, iterations=count)
            break
        value = _log_base(value, log10_base)
        count += 1
    return value.sub(1).add(count)


def _convergent_super_log(value, base, op_tuple, context):
    x = value.to_number()
    if x <= 1:
        return LayeredNumber.from_float(x - 1)
    if x >= infinite_tower(base):
        return InvalidSuperLogarithm(op_tuple).signal(context)

    ln_base = log(base)
    count = 0
    while x > base:
        if count >= SLOG_ITERATION_LIMIT:
            logger.warning('hyper.iteration_limit', op=OP_SLOG, iterations=count)
            break
        x = log(x) / ln_base
        count += 1
    return LayeredNumber.from_float(count + _fractional_height(base, x))


def super_log(value, base=10, context=None):
    '''Return the super-logarithm of value in the given base, the inverse of tetrate() in its
    height.

    Defined for bases above one.  Values in (0, 1] give value - 1 and zero gives -1.'''
    value = LayeredNumber.from_value(value)
    base = LayeredNumber.from_value(base)
    op_tuple = (OP_SLOG, value, base)

    if value.sign < 0 or base <= ONE:
        return InvalidSuperLogarithm(op_tuple).signal(context)
    if not value.sign:
        return LayeredNumber.from_float(-1.0)
    if base == TEN:
        return _super_log(0, value)
    if _is_divergent(base):
        return _divergent_super_log(value, base)
    return _convergent_super_log(value, base.multiplicand, op_tuple, context)


def lambertw(value, context=None):
    '''Return W(value) on the principal branch.

    Values beyond float range are solved from their natural logarithm, and past that
    through the asymptotic W(x) ~= ln x - ln ln x.'''
    value = LayeredNumber.from_value(value)
    if value.is_plain():
        x = value.to_number()
        if x < BRANCH_POINT:
            return InvalidLambertW((OP_LAMBERTW, value)).signal(context)
        return LayeredNumber.from_float(float_lambertw(x))
    if value.sign < 0:
        return InvalidLambertW((OP_LAMBERTW, value)).signal(context)

    ln_value = _multiply(_log10_magnitude(value), LN10)
    if ln_value.is_plain():
        return LayeredNumber.from_float(lambertw_of_log(ln_value.to_number()))
    return ln_value.sub(ln_value.log())


# 3^^^^3, the first term of Graham's sequence
GRAHAM1 = hexate(3, 3)
