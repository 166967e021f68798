#
#    Copyright (c) 2024 The wunderfill developers
#
#    See the file LICENSE.txt for your full rights.
#
"""Various weather related formulas and utilities."""

import math

import wunderfill


def CtoF(x):
    return x * 1.8 + 32.0


def FtoC(x):
    return (x - 32.0) * 5.0 / 9.0


def dewpointF(T, R):
    """Calculate dew point.

    T: Temperature in Fahrenheit

    R: Relative humidity in percent. Must be greater than zero.

    Returns: Dewpoint in Fahrenheit
    Examples:

    >>> print("%.1f" % dewpointF(68, 50))
    48.7
    >>> print("%.1f" % dewpointF(32, 50))
    15.5
    >>> print("%.2f" % dewpointF(88.44, 60))
    72.75
    """

    if T is None:
        raise wunderfill.ViolatedPrecondition("Dew point requires both temperature and humidity")
    TdC = dewpointC(FtoC(T), R)

    return CtoF(TdC)


def dewpointC(T, R):
    """Calculate dew point using the Magnus-Tetens approximation.
    http://en.wikipedia.org/wiki/Dew_point

    T: Temperature in Celsius

    R: Relative humidity in percent. Must be greater than zero.

    Returns: Dewpoint in Celsius

    Raises: wunderfill.ViolatedPrecondition if either argument is missing, or the
    humidity is not positive.
    """

    if T is None or R is None:
        raise wunderfill.ViolatedPrecondition("Dew point requires both temperature and humidity")
    if R <= 0:
        raise wunderfill.ViolatedPrecondition("Dew point requires a positive humidity, got %s" % R)
    R = R / 100.0
    _gamma = 17.27 * T / (237.7 + T) + math.log(R)
    TdC = 237.7 * _gamma / (17.27 - _gamma)
    return TdC


if __name__ == "__main__":
    import doctest

    if not doctest.testmod().failed:
        print("PASSED")
