import math
import os
from itertools import combinations

import pytest

from towernum import *
from towernum import layered


L = LayeredNumber.from_value


def read_lines(filename):
    result = []
    with open(os.path.join(os.path.dirname(__file__), 'data', filename)) as f:
        for line in f:
            hash_pos = line.find('#')
            if hash_pos != -1:
                line = line[:hash_pos]
            line = line.strip()
            if line:
                result.append(line)
    return result


def parse_fields(text):
    parts = text.split()
    if len(parts) != 7:
        assert False, f'bad fields: {text}'
    sign, multiplicand, *heights = parts
    return (int(sign), float(multiplicand), *(int(height) for height in heights))


# Test functions with an explicit context and a None context
@pytest.fixture
def context():
    with local_context(DefaultContext) as context:
        yield context


# Values in increasing order
ordered_values = (
    -GOOGOLPLEX,
    L('-1e400'),
    L(-5),
    L(-1e-300),
    ZERO,
    L(1e-300),
    ONE,
    L(1000),
    L(1e308),
    L('1e400'),
    L('2e400'),
    GOOGOLPLEX,
    GOOGOLPLEXPLEX,
    LayeredNumber(1, 20.0, tetrate=1),
    LayeredNumber(1, 21.0, tetrate=1),
    LayeredNumber(1, 20.0, pentate=1),
    LayeredNumber(1, 20.0, heptate=1),
    LayeredNumber(1, 20.0, heptate=2),
)


class TestNormalize:

    @pytest.mark.parametrize('line', read_lines('normalize.txt'))
    def test_normalize(self, line):
        raw, answer = line.split('->')
        raw = raw.split()
        sign, multiplicand, *heights = raw
        result = normalize(int(sign), float(multiplicand), *(int(height) for height in heights))
        assert result.as_tuple() == parse_fields(answer)
        assert result.is_canonical()

    @pytest.mark.parametrize('line', read_lines('normalize.txt'))
    def test_idempotent(self, line):
        fields = parse_fields(line.split('->')[1])
        value = LayeredNumber(*fields)
        assert value.as_tuple() == fields
        assert normalize(*value) == value

    @pytest.mark.parametrize('value', ordered_values)
    def test_canonical(self, value):
        assert value.is_canonical()
        assert LayeredNumber(*value).as_tuple() == value.as_tuple()

    def test_thresholds(self):
        assert HEIGHT_LIMIT == 10
        assert DOMINANCE_DIGITS == 17
        assert LOG10_FLOAT_MAX == pytest.approx(308.2547155599167)
        assert len(LOWER_BOUND) == len(HEIGHT_FIELDS) == 5
        assert LOWER_BOUND[:3] == (1.0, 10.0, 11.0)
        assert LOWER_BOUND[3] == pytest.approx(11.0033, abs=1e-4)
        assert all(11 <= bound < 12 for bound in LOWER_BOUND[2:])
        assert LOG_LOWER_BOUND[1] == 1.0
        assert PLAIN_BOUND == pytest.approx(2.48891, abs=1e-5)

    def test_promotion(self):
        # E^12(400) = 10^^(12 + slog10(400))
        value = normalize(1, 400.0, 12)
        assert value.exponent == 1
        assert value.tetrate == 1
        assert 10 ** value.multiplicand == pytest.approx(13.415317, abs=1e-5)
        assert value.is_canonical()

    def test_promotion_clamped(self):
        # Ten exponents of one land at the tetrate band minimum, 10^^10
        value = normalize(1, 1.0, 10)
        assert value.as_tuple() == (1, 1.0, 1, 1, 0, 0, 0)
        assert value.is_canonical()

    def test_multiplicand_band(self):
        for value in ordered_values:
            if not value.is_plain():
                assert 1 <= value.multiplicand < 10
        assert L(FLOAT_MAX).is_plain()

    def test_storage_round_trip(self):
        fields = {'sign': -1, 'multiplicand': 4.0, 'exponent': 2, 'tetrate': 1}
        value = LayeredNumber.from_dict(fields)
        assert value.as_tuple() == (-1, 4.0, 2, 1, 0, 0, 0)
        assert LayeredNumber.from_dict(value.as_dict()).as_tuple() == value.as_tuple()

    def test_heights_below_limit(self):
        value = normalize(1, 50.0, 9, 9, 9, 9)
        assert value.is_canonical()
        assert all(height < HEIGHT_LIMIT for height in value.heights[:4])

    def test_integral_float_heights(self):
        assert normalize(1, 400.0, 1.0) == normalize(1, 400.0, 1)

    @pytest.mark.parametrize('fields, exc_class', (
        ((2, 1.0), ValueError),
        ((1, math.inf), ValueError),
        ((1, math.nan), ValueError),
        ((1, 'x'), TypeError),
        ((1, 5.0, -1), ValueError),
        ((1, 5.0, 1.5), ValueError),
        ((1, 5.0, '1'), TypeError),
        ((1, 10 ** 400), ValueError),
    ))
    def test_bad_fields(self, fields, exc_class):
        with pytest.raises(exc_class):
            LayeredNumber(*fields)


class TestConstruction:

    def test_from_float(self):
        value = LayeredNumber.from_float(-2.5)
        assert value.as_tuple() == (-1, 2.5, 0, 0, 0, 0, 0)
        assert LayeredNumber.from_float(-0.0) is ZERO

    @pytest.mark.parametrize('value', (math.inf, -math.inf, math.nan))
    def test_non_finite(self, value):
        with pytest.raises(ValueError):
            LayeredNumber.from_float(value)
        with pytest.raises(ValueError):
            L(value)

    def test_from_int(self):
        assert L(123) == 123
        value = LayeredNumber.from_int(-10 ** 400)
        assert value.sign == -1
        assert value.exponent == 2
        assert 10 ** value.multiplicand == pytest.approx(400.0)

    @pytest.mark.parametrize('value', (None, object(), 1j))
    def test_from_value_bad_type(self, value):
        with pytest.raises(TypeError):
            L(value)

    def test_from_value_sequence(self):
        assert L([1, 10.0, 2, 0, 0, 0, 0]) == LayeredNumber(1, 1e10, 1)
        with pytest.raises(ValueError):
            L((1, 2.0))

    def test_dict_round_trip(self):
        for value in ordered_values:
            fields = value.as_dict()
            assert set(fields) == set(LayeredNumber._fields)
            result = LayeredNumber.from_dict(fields)
            assert result.as_tuple() == value.as_tuple()

    def test_from_dict_defaults(self):
        assert LayeredNumber.from_dict({'sign': 1, 'multiplicand': 400.0, 'exponent': 1}) \
            == L('1e400')

    @pytest.mark.parametrize('fields', (
        {'sign': 1},
        {'multiplicand': 1.0},
        {'sign': 1, 'multiplicand': 1.0, 'mantissa': 2},
    ))
    def test_from_dict_bad(self, fields):
        with pytest.raises(ValueError):
            LayeredNumber.from_dict(fields)

    def test_constants(self):
        assert GOOGOL == 1e100
        assert GOOGOLPLEX.as_tuple() == (1, 2.0, 3, 0, 0, 0, 0)
        assert GOOGOLPLEXPLEX.as_tuple() == (1, 2.0, 4, 0, 0, 0, 0)
        # 3^^^^3 = 3^^^(3^^^3) and 3^^^3 = 3^^(3^27)
        assert GRAHAM1.heights == (2, 1, 1, 0, 0)
        assert GRAHAM1.multiplicand == pytest.approx(math.log10(math.log10(3 ** 27)),
                                                     rel=1e-9)
        assert GOOGOL < GOOGOLPLEX < GOOGOLPLEXPLEX < GRAHAM1
        assert GRAHAM1 == hexate(3, 3)


class TestParsing:

    @pytest.mark.parametrize('text, answer', (
        ('1e3', 1000),
        ('1E3', 1000),
        ('1.5e2', 150),
        ('+1.5e2', 150),
        ('-1.5e2', -150),
        ('.5e1', 5),
        ('5.e1', 50),
        ('0e999999', 0),
        ('  2e0 ', 2),
    ))
    def test_float_range(self, text, answer):
        assert LayeredNumber.from_scientific(text) == answer

    def test_beyond_float_range(self):
        value = LayeredNumber.from_scientific('2.4e5200')
        assert value.sign == 1
        assert value.exponent == 2
        assert 10 ** value.multiplicand == pytest.approx(5200 + math.log10(2.4))
        assert LayeredNumber.from_scientific('-2.4e5200') == value.unary()

    def test_huge_exponent(self):
        value = LayeredNumber.from_scientific('1e' + '9' * 400)
        assert value.exponent == 3
        assert 10 ** value.multiplicand == pytest.approx(400.0)

    @pytest.mark.parametrize('text', ('', 'abc', '1e', 'e5', '1e-5', '1.2.3e4', '1e5.5',
                                      '1.23K', 'ee5', '--1e5', '1 e5', 'inf', 'nan'))
    def test_invalid(self, text):
        with pytest.raises(SyntaxError):
            LayeredNumber.from_scientific(text)

    def test_not_a_string(self):
        with pytest.raises(TypeError):
            LayeredNumber.from_scientific(1000)


class TestMigration:

    def test_mantissa_exponent(self):
        assert LayeredNumber.from_mantissa_exponent(2.5, 3) == 2500
        assert LayeredNumber.from_mantissa_exponent(1, 400) == L('1e400')

    def test_omega(self):
        assert LayeredNumber.from_omega(1, [5]) == 5
        assert LayeredNumber.from_omega(-1, [10, 2]) == LayeredNumber(-1, 1e10, 1)
        with pytest.raises(ValueError):
            LayeredNumber.from_omega(1, [])
        with pytest.raises(ValueError):
            LayeredNumber.from_omega(1, [1] * 7)

    def test_legacy(self):
        assert LayeredNumber.from_legacy({'mantissa': 2.5, 'exponent': 3}) == 2500
        assert LayeredNumber.from_legacy((1, [10, 2])) == LayeredNumber(1, 1e10, 1)
        value = L('1e400')
        assert LayeredNumber.from_legacy(value) is value
        assert LayeredNumber.from_legacy(value.as_dict()) == value

    def test_to_number(self):
        assert L(2.5).to_number() == 2.5
        assert L('1e400').to_number() == math.inf
        assert L('-1e400').to_number() == -math.inf
        assert ZERO.to_number() == 0


class TestCompare:

    @pytest.mark.parametrize('value', ordered_values)
    def test_self(self, value):
        assert compare(value, value) == 0
        assert value.equals(value)
        assert value == value

    def test_total_order(self):
        for (i, lhs), (j, rhs) in combinations(enumerate(ordered_values), 2):
            assert compare(lhs, rhs) == -1, (lhs, rhs)
            assert compare(rhs, lhs) == 1
            assert lhs < rhs and rhs > lhs
            assert lhs <= rhs and rhs >= lhs
            assert lhs != rhs

    def test_methods(self):
        value = L(5)
        assert value.compare(6) == -1
        assert value.less_than(6)
        assert value.less_equals(5)
        assert value.more_than(4.5)
        assert value.more_equals(5)
        assert not value.equals(5.5)

    def test_floats(self):
        assert L(5) == 5.0
        assert L(5) < math.inf
        assert L('1e400') < math.inf
        assert L('-1e400') > -math.inf
        assert not L(5) == math.nan
        assert L(5) != math.nan
        assert not L(5) < math.nan

    def test_incomparable(self):
        with pytest.raises(TypeError):
            L(5) < 'a'
        assert L(5) != 'a'

    def test_max_min(self):
        big = L('1e400')
        assert layered.max(big, 5) is big
        assert layered.min(big, 5) == 5
        assert layered.minmax(big, -5) == (-5, big)
        assert layered.minmax(ZERO, 1) == (ZERO, 1)

    def test_hash(self):
        assert hash(L(5)) == hash(5.0) == hash(5)
        assert hash(L('1e400')) == hash(L('1e400'))
        assert len({L(5), 5, L('1e400'), L('1e400')}) == 2


class TestArithmetic:

    def test_add_zero(self):
        for value in ordered_values:
            assert value.add(0) == value
            assert ZERO.add(value) == value

    def test_add_plain(self):
        assert L(2).add(3) == 5
        assert L(2) + 3 == 5
        assert 3 + L(2) == 5
        assert L(2) - 3 == -1
        assert 3 - L(2) == 1

    def test_add_overflow(self):
        value = L(1.5e308).add(1.5e308)
        assert value.exponent == 2
        assert 10 ** value.multiplicand == pytest.approx(math.log10(3) + 308)

    def test_dominance(self):
        big = L('1e400')
        # More than DOMINANCE_DIGITS orders of magnitude: the same object comes back
        assert big.add(1e300) is big
        assert big.add(L('1e382')) is big
        assert big.sub(L('1e382')) is big
        assert GOOGOLPLEX.add(GOOGOL) is GOOGOLPLEX
        assert GOOGOLPLEX.add(L('1e400')) is GOOGOLPLEX

    def test_dominance_boundary(self):
        big = L('1e400')
        # Exactly DOMINANCE_DIGITS orders apart the smaller operand still counts
        assert big.add(L('1e383')) is not big
        assert big.sub(L('1e383')) is not big
        assert big.add(L('5e382')) is big
        assert big.sub(L('5e382')) is big

    def test_within_dominance(self):
        big = L('1e400')
        assert big.add(L('1e390')) > big
        assert big.sub(L('1e390')) < big
        assert float(big.add(big).log10()) == pytest.approx(400 + math.log10(2))

    def test_cancellation(self):
        for value in ordered_values:
            assert value.sub(value) is ZERO
            assert (value + value.unary()).is_zero()

    def test_commutative(self):
        for lhs, rhs in combinations(ordered_values, 2):
            assert lhs.add(rhs) == rhs.add(lhs)
            assert lhs.mul(rhs) == rhs.mul(lhs)

    def test_mul_sign(self):
        for value in ordered_values:
            product = value.mul(value.unary())
            if value.is_zero():
                assert product.is_zero()
            elif abs(value) >= 1:
                assert product.sign == -1

    def test_mul(self):
        assert L(6).mul(7) == 42
        assert float((L('1e400') * L('1e400')).log10()) == pytest.approx(800)
        assert L('1e400') * -1 == L('-1e400')
        assert L(1e200) * 1e200 == L('1e400')
        assert L('1e400') * 0 is ZERO

    def test_mul_by_one_exact(self):
        value = LayeredNumber.from_scientific('2.4e5200')
        assert value.mul(1).as_tuple() == value.as_tuple()
        assert value.mul(-1).unary().as_tuple() == value.as_tuple()

    def test_div(self, context):
        assert L(10).div(4) == 2.5
        assert 10 / L(4) == 2.5
        assert float((L('1e800') / L('1e400')).log10()) == pytest.approx(400)
        assert float(L('1e400') / L('1e399')) == pytest.approx(10)
        assert L(1) / L('1e400') == 0
        assert context.flags == 0

    def test_reciprocal(self):
        assert L(4).reciprocal() == 0.25
        assert L(0.5).reciprocal() == 2
        assert L('1e400').reciprocal() is ZERO

    def test_pow(self):
        assert L(10).pow(100) == GOOGOL
        assert compare(L(10).pow(100), GOOGOLPLEX) == -1
        assert L(2) ** 10 == 1024
        assert 2 ** L(10) == 1024
        assert L(-2) ** 3 == -8
        assert L(-2) ** 2 == 4
        assert L(10) ** 1000 == L('1e1000')
        assert L(5).pow(0) is ONE
        assert ZERO.pow(3) is ZERO

    def test_pow_layered(self):
        assert L(10).pow(GOOGOL) == GOOGOLPLEX
        assert L(10).pow(GOOGOLPLEX) == GOOGOLPLEXPLEX
        assert L(0.5).pow(GOOGOL) is ZERO
        assert L(-10).pow(GOOGOL) == GOOGOLPLEX

    def test_pow_invalid(self, context):
        assert L(-2).pow(0.5) is None
        assert context.flags == Flags.INVALID

    def test_pow_zero_negative(self, context):
        assert ZERO.pow(-1) is None
        assert context.flags == Flags.DIV_BY_ZERO

    def test_root(self, context):
        assert L(16).root(2) == 4
        assert float(L(27).root(3)) == pytest.approx(3)
        assert float(L(-8).root(3)) == pytest.approx(-2)
        assert ZERO.root(3) is ZERO
        assert context.flags == 0
        assert float(L('1e800').root(2).log10()) == pytest.approx(400)

    def test_root_invalid(self, context):
        assert L(-8).root(2) is None
        assert context.flags == Flags.INVALID

    def test_root_zero(self, context):
        assert L(8).root(0) is None
        assert context.flags == Flags.DIV_BY_ZERO

    @pytest.mark.parametrize('lhs, rhs, answer', (
        (7, 3, 1),
        (-7, 3, 2),
        (7, -3, -2),
        (7.5, 2, 1.5),
    ))
    def test_mod(self, lhs, rhs, answer):
        assert L(lhs).mod(rhs) == answer
        assert L(lhs) % rhs == answer
        assert lhs % L(rhs) == answer

    def test_mod_zero(self, context):
        assert L(7).mod(0) is None
        assert context.flags == Flags.DIV_BY_ZERO

    def test_mod_small_by_huge(self):
        assert L(5).mod(L('1e400')) == 5

    def test_log10(self, context):
        assert L(1000).log10() == 3
        assert float(L('1e400').log10()) == pytest.approx(400)
        assert GOOGOLPLEX.log10() == GOOGOL
        assert GOOGOLPLEXPLEX.log10() == GOOGOLPLEX
        # log10(10^^20) = 10^^19
        result = LayeredNumber(1, 20.0, tetrate=1).log10()
        assert result.heights == (1, 1, 0, 0, 0)
        assert result.multiplicand == pytest.approx(math.log10(19))
        assert context.flags == 0

    def test_log(self, context):
        assert float(L(8).log(2)) == pytest.approx(3)
        assert float(L(math.e).log()) == pytest.approx(1)
        assert float(L('1e400').log(10)) == pytest.approx(400)
        assert context.flags == 0

    @pytest.mark.parametrize('value, base', ((0, 10), (-5, 10), (5, 1), (5, 0), (5, -2)))
    def test_log_invalid(self, value, base, context):
        assert L(value).log(base) is None
        assert context.flags == Flags.INVALID

    def test_log10_invalid(self, context):
        assert ZERO.log10() is None
        assert context.flags == Flags.INVALID

    def test_unary(self):
        value = L('1e400')
        assert -value == L('-1e400')
        assert +value is value
        assert abs(-value) == value
        assert (-value).abs() == value
        assert ZERO.unary() is ZERO

    def test_bad_operand(self):
        with pytest.raises(TypeError):
            L(1) + 'a'
        with pytest.raises(TypeError):
            L(1).add('a')
        with pytest.raises(TypeError):
            L(1).add(math.inf)


class TestRounding:

    @pytest.mark.parametrize('value, floor, ceil, rounded', (
        (2.5, 2, 3, 3),
        (2.4, 2, 3, 2),
        (-2.5, -3, -2, -3),
        (-2.4, -3, -2, -2),
        (7.0, 7, 7, 7),
        (0.5, 0, 1, 1),
        (0.49999999999999994, 0, 1, 0),
        (4503599627370497.0, 4503599627370497, 4503599627370497, 4503599627370497),
    ))
    def test_plain(self, value, floor, ceil, rounded):
        value = L(value)
        assert value.floor() == floor
        assert value.ceil() == ceil
        assert value.round() == rounded
        assert math.floor(value) == floor
        assert math.ceil(value) == ceil
        assert round(value) == rounded

    def test_round_digits(self):
        assert round(L(2.567), 1) == 2.6

    @pytest.mark.parametrize('value', ordered_values[:2] + ordered_values[-8:])
    def test_layered_unchanged(self, value):
        assert value.floor() is value
        assert value.ceil() is value
        assert value.round() is value
        assert value.is_integer()

    def test_is_integer(self):
        assert L(3).is_integer()
        assert not L(3.5).is_integer()

    def test_conversions(self):
        assert int(L(5.7)) == 5
        assert int(L(-5.7)) == -5
        assert float(L(2.5)) == 2.5
        assert float(L('1e400')) == math.inf
        with pytest.raises(OverflowError):
            int(L('1e400'))
        assert not ZERO
        assert L(1e-300)
