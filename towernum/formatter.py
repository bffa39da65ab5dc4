#
# Text notations for layered numbers: suffixes, scientific, e-chains, E(y)x and hyper-E
#
# (c) The towernum developers 2026.  All rights reserved.
#

import threading
from decimal import Decimal, ROUND_DOWN, localcontext
from math import ceil, floor, log10

import attr
import structlog

from .layered import LayeredNumber


__all__ = ('SuffixTable', 'FormatConfig', 'Formatter', 'DefaultFormatter', 'MODES',
           'get_formatter', 'set_formatter', 'local_formatter')

logger = structlog.get_logger(__name__)

MODES = ('suffix', 'scientific')

# Values at or past this are beyond float precision in an exponent; the mantissa is dropped
PRECISION_LIMIT = 1e15
# e-chains longer than this are printed as E(y)x instead
CHAIN_LIMIT = 10
# Significant digits of a log10 recovered from the fields that survive float noise.  Values
# are rounded to them before truncation, so that 399.99999999999994 prints as 400 and a
# mantissa of 2.4 does not print as 2.39.
LOG_DIGITS = 13


def _denoise(value, digits=LOG_DIGITS):
    return float(f'{value:.{digits}g}')


def _strip_exponents(magnitude, limit=None):
    '''Take log10 of a positive magnitude until it is a float below PRECISION_LIMIT.
    Return (count, rest), or None if that takes more than limit steps.'''
    count = 0
    rest = magnitude
    while not rest.is_plain() or rest.to_number() >= PRECISION_LIMIT:
        if count == limit:
            return None
        rest = rest.log10()
        count += 1
    if count:
        rest = LayeredNumber.from_float(_denoise(rest.to_number()))
    return count, rest


def _to_names(value):
    if isinstance(value, str):
        raise TypeError('suffix names must be a sequence of strings, not a string')
    return tuple(value)


def _names_validator(count, *, exact=True):
    def validate(instance, attribute, value):
        if not all(isinstance(name, str) for name in value):
            raise TypeError(f'{attribute.name} names must be strings')
        if exact and len(value) != count:
            raise ValueError(f'{attribute.name} requires exactly {count} names, '
                             f'got {len(value)}')
        if len(value) < count:
            raise ValueError(f'{attribute.name} requires at least {count} names')
    return validate


@attr.s(slots=True, frozen=True, kw_only=True)
class SuffixTable:
    '''The names for powers of one thousand.  The illion index n names 10^(3n + 3).'''

    # Names for indices 0 to 2 (thousand, million, billion)
    beginning = attr.ib(default=('K', 'M', 'B'), converter=_to_names,
                        validator=_names_validator(3))
    # Units, tens and hundreds names for indices 1 to 999 of a group
    first = attr.ib(default=('U', 'D', 'T', 'Qd', 'Qn', 'Sx', 'Sp', 'Oc', 'No'),
                    converter=_to_names, validator=_names_validator(9))
    second = attr.ib(default=('De', 'Vt', 'Tg', 'Qdg', 'Qng', 'Sxg', 'Spg', 'Ocg', 'Nog'),
                     converter=_to_names, validator=_names_validator(9))
    third = attr.ib(default=('Ce', 'Dce', 'Tce', 'Qdce', 'Qnce', 'Sxce', 'Spce', 'Occe',
                             'Noce'),
                    converter=_to_names, validator=_names_validator(9))
    # Multipliers of successive powers of one thousand in the index itself
    mult = attr.ib(default=('Mi', 'Mc', 'Na', 'Pi', 'Fm', 'At', 'Zp', 'Yc', 'Xo', 'Ve', 'Me'),
                   converter=_to_names, validator=_names_validator(1, exact=False))

    def group_name(self, group):
        '''Return the name of a group in 1 to 999.'''
        units, tens, hundreds = group % 10, group // 10 % 10, group // 100
        return ''.join((self.first[units - 1] if units else '',
                        self.second[tens - 1] if tens else '',
                        self.third[hundreds - 1] if hundreds else ''))


def _validate_decimal_points(instance, attribute, value):
    if not isinstance(value, int) or isinstance(value, bool):
        raise TypeError('decimal_points must be an integer')
    if value < 0:
        raise ValueError(f'decimal_points cannot be negative: {value}')


def _validate_mode(instance, attribute, value):
    if not isinstance(value, str):
        raise TypeError('default_mode must be a string')
    if value not in MODES:
        raise ValueError(f'default_mode must be one of {", ".join(MODES)}: {value!r}')


@attr.s(slots=True, frozen=True, kw_only=True)
class FormatConfig:
    '''A snapshot of the formatter configuration.'''

    suffixes = attr.ib(factory=SuffixTable, validator=attr.validators.instance_of(SuffixTable))
    # Decimals kept, by truncation, when rendering numbers
    decimal_points = attr.ib(default=2, validator=_validate_decimal_points)
    # The notation used by to_string() and str()
    default_mode = attr.ib(default='suffix', validator=_validate_mode)


@attr.s(slots=True)
class Formatter:
    '''Renders layered numbers as text.  Every method is a pure function of the value and
    the current configuration snapshot.'''

    config = attr.ib(factory=FormatConfig, validator=attr.validators.instance_of(FormatConfig))

    #
    # Configuration.  Changes validate and swap in a new snapshot.
    #

    def _replace_config(self, **changes):
        self.config = attr.evolve(self.config, **changes)
        logger.debug('formatter.config_changed', **changes)

    def change_suffixes(self, **names):
        '''Replace some or all of the suffix tiers: beginning, first, second, third and
        mult.'''
        self._replace_config(suffixes=attr.evolve(self.config.suffixes, **names))

    def change_decimal_points(self, decimal_points):
        self._replace_config(decimal_points=decimal_points)

    def change_default_abbreviation(self, mode):
        '''Set the notation to_string() uses, 'suffix' or 'scientific'.'''
        self._replace_config(default_mode=mode)

    #
    # Building blocks
    #

    def render_float(self, value):
        '''Render a float truncated toward zero at decimal_points decimals, without trailing
        zeroes or a trailing point.'''
        with localcontext() as ctx:
            ctx.prec = 330 + self.config.decimal_points
            quantum = Decimal(1).scaleb(-self.config.decimal_points)
            text = str(Decimal(repr(value)).quantize(quantum, rounding=ROUND_DOWN))
        if '.' in text:
            text = text.rstrip('0').rstrip('.')
        if text in ('-0', ''):
            text = '0'
        return text

    def suffix_name(self, index):
        '''Return the name of 10^(3 * index + 3), or None if the tables cannot name it.'''
        suffixes = self.config.suffixes
        if index < 0:
            return None
        if index < len(suffixes.beginning):
            return suffixes.beginning[index]
        if index < 1000:
            return suffixes.group_name(index)

        groups = []
        while index:
            index, group = divmod(index, 1000)
            groups.append(group)
        if len(groups) > len(suffixes.mult) + 1:
            return None

        parts = []
        for position in range(len(groups) - 1, 0, -1):
            group = groups[position]
            if group:
                prefix = '' if group == 1 else suffixes.group_name(group)
                parts.append(prefix + suffixes.mult[position - 1])
        if groups[0]:
            parts.append(suffixes.group_name(groups[0]))
        return ''.join(parts)

    def _mantissa(self, log_value, step):
        '''Split a float log10 into (mantissa, power) with mantissa in [1, 10^step) and power a
        multiple of step.'''
        power = floor(log_value / step) * step
        # The integer part of log_value uses up some of its good digits
        digits = max(1, LOG_DIGITS - floor(log10(log_value)))
        mantissa = _denoise(10 ** (log_value - power), digits)
        if mantissa >= 10 ** step:
            mantissa /= 10 ** step
            power += step
        return mantissa, power

    #
    # Notations
    #

    def to_suffix(self, value):
        '''Render as mantissa and a power-of-one-thousand name, e.g. 1.23K.  Falls back to
        scientific notation where no name exists.'''
        value = LayeredNumber.from_value(value)
        if not value.sign:
            return '0'
        sign = '-' if value.sign < 0 else ''
        magnitude = value.abs()
        if magnitude < 1000:
            return self.render_float(value.to_number())

        log_value = magnitude.log10()
        if log_value.is_plain() and log_value.to_number() < PRECISION_LIMIT:
            mantissa, power = self._mantissa(log_value.to_number(), 3)
            name = self.suffix_name(power // 3 - 1)
            if name is not None:
                return sign + self.render_float(mantissa) + name
        return self.to_scientific(value)

    def to_scientific(self, value):
        '''Render as mantissa "e" exponent, the exponent itself in suffix notation, e.g.
        2.4e5.2K.  Past float precision in the exponent the mantissa is dropped.'''
        value = LayeredNumber.from_value(value)
        if not value.sign:
            return '0'
        if value.top_level() > 0:
            return self.to_hyper_e(value)
        sign = '-' if value.sign < 0 else ''
        magnitude = value.abs()
        if magnitude < 1000:
            return self.render_float(value.to_number())

        log_value = magnitude.log10()
        if log_value.is_plain() and log_value.to_number() < PRECISION_LIMIT:
            mantissa, power = self._mantissa(log_value.to_number(), 1)
            return f'{sign}{self.render_float(mantissa)}e{self.to_suffix(float(power))}'
        return f'{sign}e{self.to_suffix(log_value)}'

    def to_e_chain(self, value):
        '''Render as repeated "e" prefixes, one per log10, e.g. ee1M.  Long chains and
        values past the exponent layer are delegated to to_ent().'''
        value = LayeredNumber.from_value(value)
        if not value.sign:
            return '0'
        if value.top_level() > 0:
            return self.to_ent(value)
        sign = '-' if value.sign < 0 else ''
        stripped = _strip_exponents(value.abs(), CHAIN_LIMIT)
        if stripped is None:
            return self.to_ent(value)
        count, rest = stripped
        return sign + 'e' * count + self.to_suffix(rest)

    def to_ent(self, value):
        '''Render as E(y)x, meaning y applications of 10^ to x.'''
        value = LayeredNumber.from_value(value)
        if not value.sign:
            return '0'
        sign = '-' if value.sign < 0 else ''
        magnitude = value.abs()

        if magnitude.top_level() <= 0:
            count, rest = _strip_exponents(magnitude)
            return f'{sign}E({count}){self.to_suffix(rest)}'

        super_log = magnitude.slog()
        if not super_log.is_plain():
            return f'{sign}E({self.to_string(super_log)})1'
        # slog = n + f with f in (0, 1], so the value is n applications of 10^ to 10^f
        height = _denoise(super_log.to_number())
        count = ceil(height) - 1
        rest = _denoise(10 ** (height - count))
        return f'{sign}E({self.to_suffix(float(count))}){self.render_float(rest)}'

    def to_hyper_e(self, value):
        '''Render every field: E<multiplicand>#<exponent>#<tetrate>#<pentate>#<hexate>#<heptate>.'''
        value = LayeredNumber.from_value(value)
        if not value.sign:
            return '0'
        sign = '-' if value.sign < 0 else ''
        multiplicand = value.multiplicand
        if multiplicand < PRECISION_LIMIT:
            text = self.render_float(multiplicand)
        else:
            text = self.to_scientific(multiplicand)
        return sign + 'E' + '#'.join([text] + [str(height) for height in value.heights])

    def to_string(self, value):
        '''Render in the configured default notation.'''
        if self.config.default_mode == 'scientific':
            return self.to_scientific(value)
        return self.to_suffix(value)


DefaultFormatter = Formatter()
tls = threading.local()


def get_formatter():
    try:
        return tls.formatter
    except AttributeError:
        tls.formatter = Formatter(config=DefaultFormatter.config)
        return tls.formatter


def set_formatter(formatter):
    '''Sets the current thread's formatter to formatter (not a copy of it).'''
    tls.formatter = formatter


class LocalFormatter:
    '''A context manager that sets the current thread's formatter to a copy of formatter on
    entry to the with-statement and restores the previous formatter on exit.  If no
    formatter is given a copy of the current one is used.'''

    def __init__(self, formatter=None):
        self.saved_formatter = None
        self.formatter_to_set = formatter

    def __enter__(self):
        self.saved_formatter = get_formatter()
        formatter = Formatter(config=(self.formatter_to_set or self.saved_formatter).config)
        set_formatter(formatter)
        return formatter

    def __exit__(self, etype, value, traceback):
        set_formatter(self.saved_formatter)


local_formatter = LocalFormatter
