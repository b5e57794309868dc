"""
Converts raw RTD codes from the converter into temperatures.

Two conversions are offered: a linear approximation straight from the
datasheet which needs no calibration, and an inversion of the
Callendar-Van Dusen equation using the reference and zero-degree
resistances of the circuit.
"""

from typing import Callable

from numpy.polynomial import Polynomial

from .errors import DidNotConverge


FULL_SCALE = 32768.0

# IEC 60751 coefficients
A = 3.9083e-3
B = -5.775e-7
C = -4.18301e-12

# R(t) / R0 above and below 0 C. The C terms only apply to negative temperatures.
_POSITIVE = Polynomial([1.0, A, B])
_NEGATIVE = Polynomial([1.0, A, B, -100 * C, C])
_POSITIVE_SLOPE = _POSITIVE.deriv()
_NEGATIVE_SLOPE = _NEGATIVE.deriv()


def newton_raphson(
    func: Callable[[float], float],
    derivative: Callable[[float], float],
    goal: float,
    guess: float = 0.0,
    max_iterations: int = 100
) -> float:
    """Find x such that func(x) == goal using Newton's method.

    Stops when the residual is exactly zero or when an iteration no
    longer moves x. If the iterates start bouncing between two values,
    whichever of the two lands closer to goal is returned.
    Raises DidNotConverge if none of that happens within max_iterations
    or the derivative vanishes.
    """
    x = guess
    before = None
    for _ in range(max_iterations):
        residual = func(x) - goal
        if residual == 0:
            return x
        slope = derivative(x)
        if slope == 0:
            raise DidNotConverge(f'Derivative vanished at x = {x}')
        following = x - residual / slope
        if following == x:
            return x
        if following == before:
            if abs(residual) <= abs(func(following) - goal):
                return x
            return following
        before, x = x, following

    raise DidNotConverge(
        f'No solution for goal {goal} after {max_iterations} iterations')


def callendar_van_dusen(temperature: float) -> float:
    """Ratio R(t) / R0 of a platinum RTD at temperature (C).
    The C terms are dropped at and above 0 C, so results above 100 C
    differ from the full quartic evaluated over the whole range.
    """
    if temperature < 0:
        return float(_NEGATIVE(temperature))
    return float(_POSITIVE(temperature))


def callendar_van_dusen_slope(temperature: float) -> float:
    """d(R/R0)/dt at temperature (C)."""
    if temperature < 0:
        return float(_NEGATIVE_SLOPE(temperature))
    return float(_POSITIVE_SLOPE(temperature))


def rtd_resistance(code: int, reference: float) -> float:
    """Resistance of the RTD in ohms for a 15-bit code."""
    return code * reference / FULL_SCALE


def simple_temperature(code: int) -> float:
    """Linear approximation from the datasheet. Exact at 0 C,
    off by roughly -1.7 C at -100 C and -1.4 C at 100 C.
    """
    return code / 32.0 - 256.0


def precise_temperature(code: int, reference: float, rtd_zero: float) -> float:
    """Temperature in C found by inverting the Callendar-Van Dusen equation."""
    ratio = rtd_resistance(code, reference) / rtd_zero
    return newton_raphson(callendar_van_dusen, callendar_van_dusen_slope, ratio)


def temperature_to_code(temperature: float, reference: float, rtd_zero: float) -> int:
    """Nearest 15-bit code the converter reports at temperature."""
    resistance = rtd_zero * callendar_van_dusen(temperature)
    return round(resistance * FULL_SCALE / reference)
