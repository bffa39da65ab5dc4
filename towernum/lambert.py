#
# Principal branch of the Lambert W function on floats
#
# (c) The towernum developers 2026.  All rights reserved.
#

from math import e, exp, isfinite, log, log1p, sqrt

import structlog


__all__ = ('lambertw', 'lambertw_of_log', 'MAX_ITERATIONS', 'TOLERANCE', 'BRANCH_POINT')

logger = structlog.get_logger(__name__)

# Iteration cap and relative convergence tolerance of both solvers
MAX_ITERATIONS = 100
TOLERANCE = 1e-10
# W is real on [-1/e, inf); W(-1/e) = -1
BRANCH_POINT = -1 / e


def _initial_guess(x):
    '''A starting point for Halley iteration on [-1/e, e].'''
    if x < -0.25:
        # Series about the branch point in p = sqrt(2(ex + 1))
        p = sqrt(max(0.0, 2 * (e * x + 1)))
        return -1 + p - p * p / 3 + 11 / 72 * p * p * p
    return log1p(x) * (1 - log1p(log1p(x)) / (2 + log1p(x)))


def _converged(old, new, tolerance):
    return abs(new - old) <= tolerance * (1 + abs(new))


def lambertw(x, *, tolerance=TOLERANCE, max_iterations=MAX_ITERATIONS):
    '''Return W(x), the w with w * e^w == x, on the principal branch.

    Raises ValueError below the branch point -1/e.  If the solver does not converge within
    max_iterations the best estimate reached is returned and a warning is logged.'''
    if not isfinite(x):
        raise ValueError(f'lambertw requires a finite operand: {x!r}')
    if x < BRANCH_POINT:
        raise ValueError(f'lambertw operand {x!r} is below -1/e')
    if x == BRANCH_POINT:
        return -1.0
    if x == 0:
        return 0.0
    if x > e:
        return lambertw_of_log(log(x), tolerance=tolerance, max_iterations=max_iterations)

    # Halley's method on f(w) = w e^w - x
    w = _initial_guess(x)
    for _ in range(max_iterations):
        ew = exp(w)
        f = w * ew - x
        wp1 = w + 1
        if wp1 == 0:
            return w
        denominator = ew * wp1 - (w + 2) * f / (2 * wp1)
        if denominator == 0:
            break
        new_w = w - f / denominator
        if _converged(w, new_w, tolerance):
            return new_w
        w = new_w

    logger.warning('lambertw.no_convergence', x=x, iterations=max_iterations, estimate=w)
    return w


def lambertw_of_log(ln_x, *, tolerance=TOLERANCE, max_iterations=MAX_ITERATIONS):
    '''Return W(x) given only ln(x), for x > e.

    Works in log space, solving w + ln(w) = ln(x) with Newton's method, so x itself may be
    far beyond float range.'''
    if not isfinite(ln_x):
        raise ValueError(f'lambertw requires a finite logarithm: {ln_x!r}')
    if ln_x <= 1:
        raise ValueError('lambertw_of_log requires ln(x) > 1')

    # Asymptotic expansion as the starting point
    l2 = log(ln_x)
    w = ln_x - l2 + l2 / ln_x
    for _ in range(max_iterations):
        g = w + log(w) - ln_x
        new_w = w - g / (1 + 1 / w)
        if new_w <= 0:
            new_w = w / 2
        if _converged(w, new_w, tolerance):
            return new_w
        w = new_w

    logger.warning('lambertw.no_convergence', ln_x=ln_x, iterations=max_iterations,
                   estimate=w)
    return w
