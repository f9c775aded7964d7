#!/usr/bin/env python3
#
#   libfastpoly: dense univariate polynomial arithmetic with fast multiplication, division and multi-point evaluation
#

from libfastpoly.basic_types import CC, GF, QQ, RR, Mod, Rational
from libfastpoly.polynomial import (MULTIPLY_THRESHOLD, InvalidDivisorError, Polynomial, PolynomialError,
                                    PolynomialRing, UndersizedDividendError)
from libfastpoly.remainder_tree import RemainderTree, interpolate, linear_factors_product, multi_point_evaluation
