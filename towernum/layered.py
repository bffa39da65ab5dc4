#
# Layered hyperoperation representation of numbers far beyond float range
#
# (c) The towernum developers 2026.  All rights reserved.
#

import builtins
import re
import sys
from collections import namedtuple
from collections.abc import Mapping
from math import ceil, floor, inf, isfinite, isnan, log10

import structlog

from .context import (
    OP_DIVIDE, OP_POW, OP_MOD, OP_ROOT, OP_RECIPROCAL,
    OP_LOG, OP_LOG10,
    DivideByZero, InvalidLogarithm, InvalidPower, InvalidRoot,
)


__all__ = ('LayeredNumber', 'normalize', 'compare',
           'float_super_log', 'FLOAT_MAX', 'LOG10_FLOAT_MAX', 'HEIGHT_LIMIT',
           'LOWER_BOUND', 'LOG_LOWER_BOUND', 'PLAIN_BOUND', 'DOMINANCE_DIGITS',
           'HEIGHT_FIELDS', 'TOP_LEVEL',
           'ZERO', 'ONE', 'TEN', 'GOOGOL', 'GOOGOLPLEX', 'GOOGOLPLEXPLEX')

logger = structlog.get_logger(__name__)

FLOAT_MAX = sys.float_info.max
LOG10_FLOAT_MAX = log10(FLOAT_MAX)

# Names of the five height fields, lowest level first.  Level K applies the operator
# Op_K: Op_0(x) = 10^x, Op_1(x) = 10^^x, Op_2(x) = 10^^^x and so on.
HEIGHT_FIELDS = ('exponent', 'tetrate', 'pentate', 'hexate', 'heptate')
TOP_LEVEL = len(HEIGHT_FIELDS) - 1

# Heights below the top level are kept strictly below this; reaching it promotes one
# unit to the next level.
HEIGHT_LIMIT = 10

# add() and sub() return the dominant operand unchanged when the log10 magnitudes of the
# operands differ by more than this.
DOMINANCE_DIGITS = 17

# Normalization rounds after which the current fields are accepted as they are
NORMALIZE_ROUND_LIMIT = 100


def float_super_log(level, x):
    '''Return the level super-logarithm of the float x > 0, the inverse of Op_(level+1).
    Level -1 is log10, level 0 the base-10 super-logarithm, and so on.

    Heights are continuous through the linear approximation: Op_K(y) = y + 1 on (-1, 0].
    '''
    if level < 0:
        return log10(x)
    count = 0
    while x > 1:
        x = float_super_log(level - 1, x)
        count += 1
    return count + x - 1


def _pow10(x):
    try:
        return 10.0 ** x
    except OverflowError:
        return FLOAT_MAX


# The least inner value a level may hold once its height is at least one.  Level 0 is the
# multiplicand itself, which a non-zero height also keeps below 10.  The bands chain
# exactly: an inner value at level K spans one unit of level-(K-1) super-logarithm above
# HEIGHT_LIMIT.
LOWER_BOUND = [1.0]
for _level in range(1, TOP_LEVEL + 1):
    LOWER_BOUND.append(HEIGHT_LIMIT + float_super_log(_level - 1, LOWER_BOUND[-1]))
LOWER_BOUND = tuple(LOWER_BOUND)
del _level
# Inner values with a single exponent are compared in log space
LOG_LOWER_BOUND = tuple(log10(bound) for bound in LOWER_BOUND)

# With exponent the only height, values whose multiplicand is below this are in float
# range
PLAIN_BOUND = log10(LOG10_FLOAT_MAX)


def _top_level(heights):
    '''Return the highest level with a non-zero height, or -1 if all are zero.'''
    for level in range(TOP_LEVEL, -1, -1):
        if heights[level]:
            return level
    return -1


def _fields_super_log(level, multiplicand, heights):
    '''Return the level super-logarithm, as a float, of the magnitude given by the fields.
    No height above level may be non-zero.'''
    top = _top_level(heights)
    if top < 0:
        return float_super_log(level, multiplicand)
    if top == level:
        lower = list(heights)
        lower[top] = 0
        return heights[top] + _fields_super_log(level, multiplicand, lower)
    # The magnitude exceeds 1, so sl(x) = 1 + sl(sl_(level-1)(x))
    return 1 + float_super_log(level, _fields_super_log(level - 1, multiplicand, heights))


def _check_height(name, value):
    if isinstance(value, float):
        if not value.is_integer():
            raise ValueError(f'{name} must be an integer: {value!r}')
        value = int(value)
    if not isinstance(value, int):
        raise TypeError(f'{name} must be an integer')
    if value < 0:
        raise ValueError(f'{name} cannot be negative: {value:,d}')
    if value > FLOAT_MAX:
        raise ValueError(f'{name} is out of range')
    return value


def _normalize_fields(sign, multiplicand, heights):
    '''Return the canonical (sign, multiplicand, *heights) tuple for the raw fields.

    The sign of the multiplicand is folded into sign.  A zero sign or multiplicand gives
    zero.  Levels are processed innermost outward; demotions are applied before
    promotions.
    '''
    if sign not in (-1, 0, 1):
        raise ValueError(f'sign must be -1, 0 or 1: {sign!r}')
    if not isinstance(multiplicand, (int, float)):
        raise TypeError('multiplicand must be a real number')
    try:
        multiplicand = float(multiplicand)
    except OverflowError:
        raise ValueError('multiplicand is out of range') from None
    if not isfinite(multiplicand):
        raise ValueError(f'multiplicand must be finite: {multiplicand!r}')
    heights = [_check_height(name, value) for name, value in zip(HEIGHT_FIELDS, heights)]

    if multiplicand < 0:
        sign = -sign
        multiplicand = -multiplicand
    if sign == 0 or multiplicand == 0:
        return (0, 0.0, 0, 0, 0, 0, 0)

    for _ in range(NORMALIZE_ROUND_LIMIT):
        if not any(heights):
            break

        # Level 0: the multiplicand under any height lies in [1, 10)
        while multiplicand >= 10:
            multiplicand = log10(multiplicand)
            heights[0] += 1
        while multiplicand < 1 and heights[0]:
            multiplicand = _pow10(multiplicand)
            heights[0] -= 1

        if _top_level(heights) == 0 and (heights[0] == 1 or
                                         heights[0] == 2 and multiplicand < PLAIN_BOUND):
            if heights[0] == 2:
                multiplicand = _pow10(multiplicand)
            multiplicand = _pow10(multiplicand)
            heights[0] = 0
            break

        demoted = _demote(heights, multiplicand)
        if demoted is not None:
            multiplicand = demoted
            continue

        for level in range(TOP_LEVEL):
            if heights[level] >= HEIGHT_LIMIT:
                # Op_K^c(x) = Op_(K+1)(c + sl_K(x))
                inner = heights[level] + _fields_super_log(
                    level, multiplicand, heights[:level] + [0] * (TOP_LEVEL + 1 - level))
                multiplicand = builtins.max(inner, LOWER_BOUND[level + 1])
                for lower in range(level + 1):
                    heights[lower] = 0
                heights[level + 1] += 1
                break
        else:
            break
    else:
        logger.warning('normalize.round_limit', multiplicand=multiplicand, heights=heights)

    return (sign, multiplicand, *heights)


def _demote(heights, multiplicand):
    '''If some level's inner value lies below its band, apply its operator once to the
    inner value, updating heights in place, and return the new multiplicand.  Otherwise
    return None and leave heights untouched.

    The multiplicand must already be in [1, 10) if exponent is non-zero.'''
    for level in range(1, TOP_LEVEL + 1):
        # Only an inner value of at most one exponent can be below a band
        if not heights[level] or any(heights[1:level]) or heights[0] > 1:
            continue
        if heights[0]:
            if multiplicand >= LOG_LOWER_BOUND[level]:
                continue
            y = _pow10(multiplicand)
        else:
            y = multiplicand
        heights[level] -= 1
        heights[0] = 0
        if y <= 1:
            return _pow10(y)
        # Op_K(n + f) = Op_(K-1)^n(10^f) with f in (0, 1]
        n = ceil(y) - 1
        heights[level - 1] = n
        return _pow10(y - n)
    return None


class LayeredNumber(namedtuple('LayeredNumber',
                               'sign multiplicand exponent tetrate pentate hexate heptate')):
    '''Internal Representation
       -----------------------

    The magnitude is

        Op_4^heptate(Op_3^hexate(Op_2^pentate(Op_1^tetrate(Op_0^exponent(multiplicand)))))

    where Op_0(x) = 10^x, Op_1(x) = 10^^x, Op_2(x) = 10^^^x and so on, and the value is the
    magnitude times sign.  Every instance is canonical: construction normalizes the
    fields.

    With all heights zero the multiplicand is an ordinary float, and every value in float
    range is held that way.  Once any height is non-zero the multiplicand lies in
    [1, 10).  The inner value below a non-zero height is at least LOWER_BOUND for that
    level, and each height other than heptate stays below HEIGHT_LIMIT.  The bands are
    disjoint and ordered, so comparing (sign, heptate, hexate, pentate, tetrate, exponent,
    multiplicand) lexicographically orders values.

    For example (-1, 4.0, 2, 1, 0, 0, 0) is -10^^(10^10^4).

    The plain 7-field tuple is the storage form; as_dict() and from_dict() round-trip
    it exactly.
    '''

    __slots__ = ()

    def __new__(cls, sign, multiplicand, exponent=0, tetrate=0, pentate=0, hexate=0,
                heptate=0):
        '''Validate and normalize the raw fields.'''
        fields = _normalize_fields(sign, multiplicand,
                                   (exponent, tetrate, pentate, hexate, heptate))
        return super().__new__(cls, *fields)

    ##
    ## Construction
    ##

    @classmethod
    def from_value(cls, value):
        '''Return value converted to a LayeredNumber.

        Accepts a LayeredNumber, int, float, a mapping or sequence of the seven fields, or
        a string in raw scientific notation.'''
        if isinstance(value, LayeredNumber):
            return value
        if isinstance(value, int):
            return cls.from_int(value)
        if isinstance(value, float):
            return cls.from_float(value)
        if isinstance(value, str):
            return cls.from_scientific(value)
        if isinstance(value, Mapping):
            return cls.from_dict(value)
        if isinstance(value, (tuple, list)):
            if len(value) != len(cls._fields):
                raise ValueError(f'expected {len(cls._fields)} fields, got {len(value)}')
            return cls(*value)
        raise TypeError(f'cannot convert {type(value).__name__} to LayeredNumber')

    @classmethod
    def from_float(cls, value):
        '''Return the float value as a LayeredNumber.  Infinities and NaNs are rejected.'''
        if not isinstance(value, float):
            raise TypeError('from_float requires a float')
        if not isfinite(value):
            raise ValueError(f'cannot convert non-finite float {value!r}')
        if value == 0:
            return ZERO
        if value < 0:
            return cls._make((-1, -value, 0, 0, 0, 0, 0))
        return cls._make((1, value, 0, 0, 0, 0, 0))

    @classmethod
    def from_int(cls, value):
        '''Return the integer value as a LayeredNumber.  Integers beyond float range keep
        their log10.'''
        if not isinstance(value, int):
            raise TypeError('from_int requires an integer')
        try:
            return cls.from_float(float(value))
        except OverflowError:
            sign = -1 if value < 0 else 1
            return cls(sign, log10(abs(value)), 1)

    @classmethod
    def from_dict(cls, fields):
        '''Return a LayeredNumber from a mapping of the seven fields.  Missing heights are
        zero.'''
        unknown = set(fields) - set(cls._fields)
        if unknown:
            raise ValueError(f'unknown fields: {", ".join(sorted(unknown))}')
        if 'sign' not in fields or 'multiplicand' not in fields:
            raise ValueError('sign and multiplicand are required')
        return cls(**fields)

    @classmethod
    def from_scientific(cls, text):
        '''Convert raw scientific notation, mantissa "e" exponent with the exponent as plain
        decimal digits, to a LayeredNumber.  Suffixed or chained text produced by the
        formatter is not accepted.'''
        if not isinstance(text, str):
            raise TypeError('from_scientific requires a string')
        match = SCIENTIFIC_REGEX.match(text.strip())
        if match is None:
            raise SyntaxError(f'invalid scientific notation: {text}')

        sign_str, mantissa_str, exponent_str = match.groups()
        sign = -1 if sign_str == '-' else 1
        mantissa = float(mantissa_str)
        if mantissa == 0:
            return ZERO
        value = float(f'{mantissa_str}e{exponent_str}')
        if isfinite(value):
            return cls.from_float(sign * value)

        # Beyond float range: 10^(log10(mantissa) + exponent)
        log_value = _add(cls.from_float(log10(mantissa)), cls.from_int(int(exponent_str)))
        return _power_of_ten(log_value).with_sign(sign)

    @classmethod
    def from_mantissa_exponent(cls, mantissa, exponent):
        '''Convert the legacy two-field form, worth mantissa * 10^exponent.'''
        mantissa = cls.from_value(mantissa)
        exponent = cls.from_value(exponent)
        return _multiply(mantissa, _power_of_ten(exponent))

    @classmethod
    def from_omega(cls, sign, array):
        '''Convert the legacy sign-and-array form.  array[0] is the number and array[i] the
        count of level-(i - 1) operators applied to it.'''
        array = list(array)
        if not array:
            raise ValueError('array cannot be empty')
        if len(array) > len(HEIGHT_FIELDS) + 1:
            raise ValueError(f'array has {len(array)} entries; at most '
                             f'{len(HEIGHT_FIELDS) + 1} can be represented')
        return cls(sign, *array)

    @classmethod
    def from_legacy(cls, value):
        '''Convert a value in any legacy form, passing through values already migrated.'''
        if isinstance(value, Mapping) and set(value) == {'mantissa', 'exponent'}:
            return cls.from_mantissa_exponent(value['mantissa'], value['exponent'])
        if (isinstance(value, (tuple, list)) and len(value) == 2
                and isinstance(value[1], (tuple, list))):
            return cls.from_omega(value[0], value[1])
        return cls.from_value(value)

    def as_dict(self):
        '''Return the seven fields as a plain dictionary.'''
        return dict(self._asdict())

    def as_tuple(self):
        '''Return the seven fields as a plain tuple.'''
        return tuple(self)

    ##
    ## Non-computational operations
    ##

    @property
    def heights(self):
        '''The five heights, lowest level first.'''
        return self[2:]

    def top_level(self):
        '''Return the highest level with a non-zero height, or -1 for ordinary floats.'''
        return _top_level(self.heights)

    def is_plain(self):
        '''Return True if the value is an ordinary float (all heights zero).'''
        return not any(self.heights)

    def is_zero(self):
        return self.sign == 0

    def is_negative(self):
        return self.sign < 0

    def is_canonical(self):
        '''Return True if normalizing the fields leaves them unchanged.'''
        return _normalize_fields(self.sign, self.multiplicand, self.heights) == tuple(self)

    def with_sign(self, sign):
        '''Return this magnitude with the given sign.  Zero is unchanged.'''
        if self.sign == sign or self.sign == 0:
            return self
        if sign == 0:
            return ZERO
        return self._make((sign, *self[1:]))

    def to_number(self):
        '''Return the value as a float; values beyond float range give an infinity.'''
        if self.is_plain():
            return self.sign * self.multiplicand
        return self.sign * inf

    # Deprecated alias
    revert = to_number

    ##
    ## Quiet computational operations
    ##

    def abs(self):
        return self.with_sign(abs(self.sign))

    def unary(self):
        '''Return the negation of the value.'''
        return self.with_sign(-self.sign)

    def compare(self, other):
        '''Return -1, 0 or 1 as the value is less than, equal to or greater than other.'''
        return compare(self, self._coerce(other))

    def equals(self, other):
        return self.compare(other) == 0

    def less_than(self, other):
        return self.compare(other) < 0

    def less_equals(self, other):
        return self.compare(other) <= 0

    def more_than(self, other):
        return self.compare(other) > 0

    def more_equals(self, other):
        return self.compare(other) >= 0

    def floor(self):
        '''Round down to an integer.  Only meaningful within float range; other values are
        returned unchanged.'''
        if not self.is_plain():
            return self
        return self.from_float(float(floor(self.to_number())))

    def ceil(self):
        '''Round up to an integer.  Only meaningful within float range; other values are
        returned unchanged.'''
        if not self.is_plain():
            return self
        return self.from_float(float(ceil(self.to_number())))

    def round(self):
        '''Round to the nearest integer, ties away from zero.  Only meaningful within float
        range; other values are returned unchanged.'''
        if not self.is_plain():
            return self
        # Adding 0.5 first would round 0.49999999999999994 and odd integers past 2^52
        # upward
        result = floor(self.multiplicand)
        if self.multiplicand - result >= 0.5:
            result += 1
        return self.from_float(float(result)).with_sign(self.sign)

    def is_integer(self):
        '''Return True if the value is integral.  Every value beyond float range is.'''
        if not self.is_plain():
            return True
        return self.multiplicand.is_integer()

    ##
    ## Signalling computational operations
    ##

    def add(self, other):
        return _add(self, self._coerce(other))

    def sub(self, other):
        return _add(self, self._coerce(other).unary())

    def mul(self, other):
        return _multiply(self, self._coerce(other))

    def div(self, other, context=None):
        return _divide(self, self._coerce(other), (OP_DIVIDE, self, other), context)

    def reciprocal(self, context=None):
        return _divide(ONE, self, (OP_RECIPROCAL, self), context)

    def pow(self, other, context=None):
        return _power(self, self._coerce(other), context)

    def root(self, other, context=None):
        return _root(self, self._coerce(other), context)

    def mod(self, other, context=None):
        return _modulo(self, self._coerce(other), context)

    def log10(self, context=None):
        '''Return log10 of the value, or the absent result for non-positive values.'''
        if self.sign <= 0:
            return InvalidLogarithm((OP_LOG10, self)).signal(context)
        return _log10_magnitude(self)

    def log(self, base=None, context=None):
        '''Return the logarithm of the value in the given base, natural if omitted.'''
        base = E_NUMBER if base is None else self._coerce(base)
        op_tuple = (OP_LOG, self, base)
        if self.sign <= 0 or base.sign <= 0 or base == ONE:
            return InvalidLogarithm(op_tuple).signal(context)
        return _divide(_log10_magnitude(self), _log10_magnitude(base), op_tuple, context)

    ##
    ## Hyperoperations; see hyper.py
    ##

    def tet(self, height, context=None):
        '''Return self^^height.'''
        from .hyper import tetrate
        return tetrate(self, height, context)

    def pent(self, height, context=None):
        '''Return self^^^height.'''
        from .hyper import pentate
        return pentate(self, height, context)

    def hext(self, height, context=None):
        '''Return self^^^^height.'''
        from .hyper import hexate
        return hexate(self, height, context)

    def slog(self, base=10, context=None):
        '''Return the super-logarithm of the value in the given base.'''
        from .hyper import super_log
        return super_log(self, base, context)

    def lambertw(self, context=None):
        '''Return W(value) on the principal branch.'''
        from .hyper import lambertw
        return lambertw(self, context)

    ##
    ## Python support - make it feel like a Python numeric data type.
    ##

    @classmethod
    def convert_for_arith(cls, value):
        '''Return value as a LayeredNumber, or None if it is not a finite number.'''
        if isinstance(value, LayeredNumber):
            return value
        if isinstance(value, float) and not isfinite(value):
            return None
        if isinstance(value, (int, float)):
            return cls.from_value(value)
        return None

    def _coerce(self, value):
        result = self.convert_for_arith(value)
        if result is None:
            raise TypeError(f'cannot operate on {type(value).__name__}')
        return result

    def __abs__(self):
        return self.abs()

    def __neg__(self):
        return self.unary()

    def __pos__(self):
        return self

    def __eq__(self, other):
        compare = _compare_any(self, other)
        if compare is None:
            return NotImplemented
        return compare == 0

    def __ne__(self, other):
        compare = _compare_any(self, other)
        if compare is None:
            return NotImplemented
        return compare != 0

    def __lt__(self, other):
        compare = _compare_any(self, other)
        if compare is None:
            return NotImplemented
        return compare == -1

    def __le__(self, other):
        compare = _compare_any(self, other)
        if compare is None:
            return NotImplemented
        return compare in (-1, 0)

    def __gt__(self, other):
        compare = _compare_any(self, other)
        if compare is None:
            return NotImplemented
        return compare == 1

    def __ge__(self, other):
        compare = _compare_any(self, other)
        if compare is None:
            return NotImplemented
        return compare in (0, 1)

    def __hash__(self):
        '''Python hash.  Values in float range hash equally to the float.'''
        if self.is_plain():
            return hash(self.to_number())
        return hash(tuple(self))

    def __bool__(self):
        return self.sign != 0

    def __float__(self):
        return self.to_number()

    def __int__(self):
        return int(self.to_number())

    def __trunc__(self):
        return int(self.to_number())

    def __floor__(self):
        return int(self.floor().to_number())

    def __ceil__(self):
        return int(self.ceil().to_number())

    def __round__(self, ndigits=None):
        if ndigits is None:
            return int(self.round().to_number())
        if not isinstance(ndigits, int):
            raise TypeError('ndigits must be an integer')
        if not self.is_plain():
            return self
        return self.from_float(round(self.to_number(), ndigits))

    def __add__(self, other):
        other = self.convert_for_arith(other)
        if other is None:
            return NotImplemented
        return _add(self, other)

    def __sub__(self, other):
        other = self.convert_for_arith(other)
        if other is None:
            return NotImplemented
        return _add(self, other.unary())

    def __mul__(self, other):
        other = self.convert_for_arith(other)
        if other is None:
            return NotImplemented
        return _multiply(self, other)

    def __truediv__(self, other):
        other = self.convert_for_arith(other)
        if other is None:
            return NotImplemented
        return _divide(self, other, (OP_DIVIDE, self, other), None)

    def __mod__(self, other):
        other = self.convert_for_arith(other)
        if other is None:
            return NotImplemented
        return _modulo(self, other, None)

    def __pow__(self, other, modulo=None):
        if modulo is not None:
            return NotImplemented
        other = self.convert_for_arith(other)
        if other is None:
            return NotImplemented
        return _power(self, other, None)

    def __radd__(self, other):
        return self.__add__(other)

    def __rsub__(self, other):
        other = self.convert_for_arith(other)
        if other is None:
            return NotImplemented
        return _add(other, self.unary())

    def __rmul__(self, other):
        return self.__mul__(other)

    def __rtruediv__(self, other):
        other = self.convert_for_arith(other)
        if other is None:
            return NotImplemented
        return _divide(other, self, (OP_DIVIDE, other, self), None)

    def __rmod__(self, other):
        other = self.convert_for_arith(other)
        if other is None:
            return NotImplemented
        return _modulo(other, self, None)

    def __rpow__(self, other):
        other = self.convert_for_arith(other)
        if other is None:
            return NotImplemented
        return _power(other, self, None)

    def __str__(self):
        from .formatter import get_formatter
        return get_formatter().to_string(self)


def normalize(sign, multiplicand, exponent=0, tetrate=0, pentate=0, hexate=0, heptate=0):
    '''Return the canonical LayeredNumber for the raw fields.'''
    return LayeredNumber(sign, multiplicand, exponent, tetrate, pentate, hexate, heptate)


#
# Comparison
#

def _magnitude_key(value):
    return (value.heptate, value.hexate, value.pentate, value.tetrate, value.exponent,
            value.multiplicand)


def _compare_magnitude(lhs, rhs):
    lhs_key, rhs_key = _magnitude_key(lhs), _magnitude_key(rhs)
    if lhs_key == rhs_key:
        return 0
    return 1 if lhs_key > rhs_key else -1


def compare(lhs, rhs):
    '''Return -1, 0 or 1 comparing two LayeredNumbers.  Sign decides first, then the
    heights from the outermost inward, then the multiplicand.'''
    if lhs.sign != rhs.sign:
        return -1 if lhs.sign < rhs.sign else 1
    return _compare_magnitude(lhs, rhs) * (lhs.sign or 1)


def _compare_any(value, other):
    '''LHS is a LayeredNumber.  RHS is any type.  Returns None if incomparable; NaNs compare
    unordered, which here means unequal to everything.'''
    if isinstance(other, float) and not isfinite(other):
        if isnan(other):
            return 2
        return -1 if other > 0 else 1
    other = LayeredNumber.convert_for_arith(other)
    if other is None:
        return None
    return compare(value, other)


def max(lhs, rhs):
    '''Return the larger of two values.'''
    rhs = LayeredNumber.from_value(rhs)
    return rhs if compare(rhs, lhs) > 0 else lhs


def min(lhs, rhs):
    '''Return the smaller of two values.'''
    rhs = LayeredNumber.from_value(rhs)
    return rhs if compare(rhs, lhs) < 0 else lhs


def minmax(lhs, rhs):
    '''Return the pair (smaller, larger) of two values.'''
    rhs = LayeredNumber.from_value(rhs)
    if compare(rhs, lhs) < 0:
        return rhs, lhs
    return lhs, rhs


#
# Structural operators on magnitudes
#

def _apply_operator(level, value):
    '''Return Op_level(|value|).'''
    if not value.sign:
        return ONE
    if value.sign < 0:
        if level == 0 or not value.is_plain():
            return _power_of_ten(value)
        # Op_K(y) = y + 1 on (-1, 0]
        return LayeredNumber.from_float(value.to_number() + 1)
    top = value.top_level()
    if top <= level:
        heights = list(value.heights)
        heights[level] += 1
        return LayeredNumber(1, value.multiplicand, *heights)
    # Op_K(x) = Op_(K+1)(sl_K(x) + 1)
    return _apply_operator(level + 1, _add(_super_log(level, value), ONE))


def _super_log(level, value):
    '''Return sl_level(|value|), the inverse of Op_(level+1); level -1 is log10.  The
    magnitude must be non-zero.'''
    top = value.top_level()
    heights = list(value.heights)
    if top <= level:
        return LayeredNumber.from_float(_fields_super_log(level, value.multiplicand, heights))
    if top == level + 1:
        heights[top] -= 1
        return LayeredNumber(1, value.multiplicand, *heights)
    if top == level + 2 and heights[top] == 1:
        # sl_K(Op_(K+2)(x)) = Op_(K+2)(x - 1)
        heights[top] = 0
        inner = _add(LayeredNumber(1, value.multiplicand, *heights), MINUS_ONE)
        inner_heights = list(inner.heights)
        inner_heights[top] = 1
        return LayeredNumber(1, inner.multiplicand, *inner_heights)
    # Anything subtracted from the inner value is absorbed
    return value.abs()


def _log10_magnitude(value):
    return _super_log(-1, value)


def _power_of_ten(value):
    '''Return 10^value.'''
    if value.is_plain():
        return _power_of_ten_float(value.to_number())
    if value.sign < 0:
        return ZERO
    return _apply_operator(0, value)


def _power_of_ten_float(value):
    if value < LOG10_FLOAT_MAX:
        return LayeredNumber.from_float(_pow10(value))
    return LayeredNumber(1, value, 1)


def _log10_float(value):
    '''Return log10 of the magnitude as a float, or None if that is beyond float range.'''
    if value.is_plain():
        return log10(value.multiplicand)
    if value.top_level() > 0 or value.exponent > 3:
        return None
    result = value.multiplicand
    try:
        for _ in range(value.exponent - 1):
            result = 10.0 ** result
    except OverflowError:
        return None
    return result


#
# Arithmetic
#

def _add(lhs, rhs):
    if not lhs.sign:
        return rhs
    if not rhs.sign:
        return lhs

    if lhs.is_plain() and rhs.is_plain():
        total = lhs.to_number() + rhs.to_number()
        if isfinite(total):
            return LayeredNumber.from_float(total)

    magnitude = _compare_magnitude(lhs, rhs)
    if magnitude == 0 and lhs.sign != rhs.sign:
        return ZERO
    big, small = (lhs, rhs) if magnitude >= 0 else (rhs, lhs)

    # Once log10(big) leaves float range, log10(1 + small/big) is below its precision
    big_log = _log10_float(big)
    if big_log is None:
        return big
    diff = big_log - _log10_float(small)
    # Logs recovered through 10^m carry noise in the last digits
    if round(diff, 9) > DOMINANCE_DIGITS:
        return big
    if big.sign == small.sign:
        log_sum = big_log + log10(1 + _pow10(-diff))
    elif diff <= 0:
        return ZERO
    else:
        log_sum = big_log + log10(1 - _pow10(-diff))
    return _power_of_ten_float(log_sum).with_sign(big.sign)


def _is_unit(value):
    return value.is_plain() and value.multiplicand == 1


def _multiply(lhs, rhs):
    sign = lhs.sign * rhs.sign
    if not sign:
        return ZERO
    if _is_unit(rhs):
        return lhs.with_sign(sign)
    if _is_unit(lhs):
        return rhs.with_sign(sign)

    if lhs.is_plain() and rhs.is_plain():
        product = lhs.multiplicand * rhs.multiplicand
        if isfinite(product):
            return LayeredNumber.from_float(sign * product)

    # The smaller operand's log-magnitude folds into the exponent layer
    log_sum = _add(_log10_magnitude(lhs), _log10_magnitude(rhs))
    return _power_of_ten(log_sum).with_sign(sign)


def _divide(lhs, rhs, op_tuple, context):
    if not rhs.sign:
        return DivideByZero(op_tuple).signal(context)
    sign = lhs.sign * rhs.sign
    if not sign:
        return ZERO
    if _is_unit(rhs):
        return lhs.with_sign(sign)

    if lhs.is_plain() and rhs.is_plain():
        quotient = lhs.multiplicand / rhs.multiplicand
        if isfinite(quotient):
            return LayeredNumber.from_float(sign * quotient)

    log_diff = _add(_log10_magnitude(lhs), _log10_magnitude(rhs).unary())
    return _power_of_ten(log_diff).with_sign(sign)


def _is_odd_integer(value):
    if not value.is_plain() or not value.multiplicand.is_integer():
        return False
    return int(value.multiplicand) % 2 == 1


def _power(base, exponent, context):
    '''Return base^exponent, scaling the exponent layer of base by exponent.'''
    op_tuple = (OP_POW, base, exponent)
    if not exponent.sign:
        return ONE
    if not base.sign:
        if exponent.sign > 0:
            return ZERO
        return DivideByZero(op_tuple).signal(context)

    sign = 1
    if base.sign < 0:
        if not exponent.is_integer():
            return InvalidPower(op_tuple).signal(context)
        if _is_odd_integer(exponent):
            sign = -1

    if base.is_plain() and exponent.is_plain():
        try:
            result = base.multiplicand ** exponent.to_number()
        except OverflowError:
            pass
        else:
            return LayeredNumber.from_float(sign * result)

    log_product = _multiply(_log10_magnitude(base), exponent)
    return _power_of_ten(log_product).with_sign(sign)


def _root(value, degree, context):
    op_tuple = (OP_ROOT, value, degree)
    if not degree.sign:
        return DivideByZero(op_tuple).signal(context)
    if not value.sign:
        if degree.sign > 0:
            return ZERO
        return DivideByZero(op_tuple).signal(context)
    if value.sign < 0 and not _is_odd_integer(degree):
        return InvalidRoot(op_tuple).signal(context)
    exponent = _divide(ONE, degree, op_tuple, context)
    return _power(value.abs(), exponent, context).with_sign(value.sign)


def _modulo(lhs, rhs, context):
    '''Return lhs - floor(lhs / rhs) * rhs.'''
    op_tuple = (OP_MOD, lhs, rhs)
    if not rhs.sign:
        return DivideByZero(op_tuple).signal(context)
    if not lhs.sign:
        return ZERO
    if lhs.is_plain() and rhs.is_plain():
        return LayeredNumber.from_float(lhs.to_number() % rhs.to_number())
    quotient = _divide(lhs, rhs, op_tuple, context).floor()
    return _add(lhs, _multiply(quotient, rhs).unary())


#
# Constants
#

SCIENTIFIC_REGEX = re.compile(
    # sign[opt]
    '([-+]?)'
    # dec-integer[.fraction[opt]] or .fraction
    '([0-9]+(?:\\.[0-9]*)?|\\.[0-9]+)'
    # e dec-exponent
    'e([0-9]+)$',
    re.ASCII | re.IGNORECASE
)

ZERO = LayeredNumber._make((0, 0.0, 0, 0, 0, 0, 0))
ONE = LayeredNumber._make((1, 1.0, 0, 0, 0, 0, 0))
MINUS_ONE = LayeredNumber._make((-1, 1.0, 0, 0, 0, 0, 0))
TEN = LayeredNumber._make((1, 10.0, 0, 0, 0, 0, 0))
E_NUMBER = LayeredNumber.from_float(2.718281828459045)

GOOGOL = LayeredNumber.from_float(1e100)
GOOGOLPLEX = LayeredNumber._make((1, 2.0, 3, 0, 0, 0, 0))
GOOGOLPLEXPLEX = LayeredNumber._make((1, 2.0, 4, 0, 0, 0, 0))
