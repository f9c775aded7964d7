#!/usr/bin/env python3
#
#   Remainder trees: products of linear factors, multi-point evaluation and interpolation
#

import logging

from libfastpoly.polynomial import Polynomial, PolynomialRing

_logger = logging.getLogger(__name__)

def linear_factors_product(ring : PolynomialRing, roots, tree : list = None, v : int = 1, l : int = 0, r : int = None):
    """
    Compute the product of the linear factors (x - roots[l]) * ... * (x - roots[r-1]) using binary splitting in
    O(n log(n)^2). When `tree` is given, node v (covering [l, r)) is recorded at tree[v], its children at 2v and 2v+1.
    """
    if r is None:
        r = len(roots)
    if l >= r:
        raise ValueError("Product over an empty range of roots")

    if l + 1 == r:
        node = Polynomial(ring, [-ring.coeff_ring(roots[l]), ring.coeff_one])
    else:
        m = (l + r) // 2
        node = linear_factors_product(ring, roots, tree, 2 * v, l, m) * \
               linear_factors_product(ring, roots, tree, 2 * v + 1, m, r)

    if tree is not None:
        assert tree[v] is None , f"Remainder tree node {v} written twice"
        tree[v] = node
    return node

def reduce_modulo(f : Polynomial, g : Polynomial):
    """
    f mod g, where a polynomial already smaller than g is its own remainder
    """
    if f.deg() < g.deg():
        return f
    return f % g

class RemainderTree:
    """
    Binary tree of products of linear factors over a list of points, stored by heap index (root 1, children of v at 2v
    and 2v+1). The tree is built once on construction and only read afterwards.
    """

    def __init__(self, ring : PolynomialRing, points):
        self.ring = ring
        self.points = [ring.coeff_ring(x) for x in points]
        self.n = len(self.points)
        self.tree = [None] * (4 * self.n)
        if self.n > 0:
            linear_factors_product(ring, self.points, self.tree, 1, 0, self.n)
        _logger.debug("remainder tree over %d points", self.n)

    def __len__(self):
        return self.n

    def node(self, v : int):
        return self.tree[v].copy()

    def product(self):
        """
        The product of (x - p) over all points
        """
        if self.n == 0:
            return Polynomial(self.ring, [1])
        return self.node(1)

    def evaluate(self, f : Polynomial):
        """
        Evaluates f at every point, in the order the points were given
        """
        assert f.ring == self.ring , "Polynomial rings should match"
        if self.n == 0:
            return []
        return self._evaluate(f, 1, 0, self.n)

    def _evaluate(self, f : Polynomial, v : int, l : int, r : int):
        if l + 1 == r:
            return [f.evaluate(self.points[l])]
        A1 = reduce_modulo(f, self.tree[2 * v])
        A2 = reduce_modulo(f, self.tree[2 * v + 1])
        m = (l + r) // 2
        return self._evaluate(A1, 2 * v, l, m) + self._evaluate(A2, 2 * v + 1, m, r)

    def interpolate(self, values):
        """
        The unique polynomial of degree < n taking values[i] at points[i], via the Lagrange form
            f = sum_i values[i] / M'(points[i]) * M / (x - points[i])
        where M is the product of all linear factors
        """
        if len(values) != self.n:
            raise ValueError(f"Expected {self.n} values, got {len(values)}")
        if self.n == 0:
            return Polynomial(self.ring, [])

        weights = self.evaluate(self.tree[1].derivation())
        if any(w == 0 for w in weights):
            raise ValueError("Interpolation points must be distinct")

        scaled = [self.ring.coeff_ring(y) / w for y,w in zip(values, weights)]
        return self._combine(scaled, 1, 0, self.n)

    def _combine(self, scaled, v : int, l : int, r : int):
        if l + 1 == r:
            return Polynomial(self.ring, [scaled[l]])
        m = (l + r) // 2
        left = self._combine(scaled, 2 * v, l, m)
        right = self._combine(scaled, 2 * v + 1, m, r)
        return left * self.tree[2 * v + 1] + right * self.tree[2 * v]

def multi_point_evaluation(f : Polynomial, xs):
    """
    Evaluate f at multiple points in O(n log(n)^2)
    """
    return RemainderTree(f.ring, xs).evaluate(f)

def interpolate(ring : PolynomialRing, xs, ys):
    """
    Fast Lagrange interpolation in O(n log(n)^2)
    """
    if len(xs) != len(ys):
        raise ValueError(f"Got {len(xs)} points but {len(ys)} values")
    return RemainderTree(ring, xs).interpolate(ys)

########################################################################################################################
#   Unit Tests
########################################################################################################################

import random
import unittest

import numpy as np

from libfastpoly.basic_types import GF, LARGEST_u16_PRIME, QQ, RR, Rational
from libfastpoly.transform import NTT_PRIME

class TestLinearFactorsProduct(unittest.TestCase):

    def setUp(self):
        self.R = PolynomialRing(GF(LARGEST_u16_PRIME))
        self.x = self.R.variables()[0]

    def test_small(self):
        x = self.x
        self.assertEqual(linear_factors_product(self.R, [3]), x - 3)
        self.assertEqual(linear_factors_product(self.R, [1, -1]), x**2 - 1)
        self.assertEqual(Polynomial.linear_factors_product(self.R, [1, 2, 3]), (x - 1) * (x - 2) * (x - 3))

    def test_roots(self):
        sizes = {self.R : (1, 2, 5, 16, 33, 250), PolynomialRing(GF(NTT_PRIME)) : (3, 250), PolynomialRing(QQ) : (1, 5, 33)}
        for R, ns in sizes.items():
            for n in ns:
                roots = R.coeff_ring.rand_elems(n)
                P = linear_factors_product(R, roots)
                self.assertEqual(P.degree(), n)
                self.assertEqual(P.leading_coeff(), 1)
                for root in roots:
                    self.assertEqual(P(root), 0)

    def test_tree_storage(self):
        roots = self.R.coeff_ring.rand_elems(11)
        tree = [None] * 44
        P = linear_factors_product(self.R, roots, tree)
        self.assertEqual(tree[1], P)
        # every internal node is the product of its children
        for v in range(1, 22):
            if tree[v] is not None and tree[2 * v] is not None:
                self.assertEqual(tree[v], tree[2 * v] * tree[2 * v + 1])
        self.assertEqual(sum(1 for node in tree if node is not None), 2 * 11 - 1)

    def test_empty(self):
        with self.assertRaises(ValueError):
            linear_factors_product(self.R, [])

class TestRemainderTree(unittest.TestCase):

    def setUp(self):
        self.R = PolynomialRing(GF(LARGEST_u16_PRIME))

    def test_nodes_are_not_shared(self):
        T = RemainderTree(self.R, [1, 2, 3])
        P = T.product()
        P *= 5
        self.assertEqual(T.product(), Polynomial.linear_factors_product(self.R, [1, 2, 3]))

    def test_empty(self):
        T = RemainderTree(self.R, [])
        self.assertEqual(len(T), 0)
        self.assertEqual(T.product(), 1)
        self.assertEqual(T.evaluate(self.R([1, 2, 3])), [])
        self.assertEqual(T.interpolate([]), 0)

    def test_reduce_modulo(self):
        f = self.R([1, 2])
        g = self.R([1, 2, 3])
        self.assertIs(reduce_modulo(f, g), f)
        self.assertEqual(reduce_modulo(self.R([0, 0, 0, 0, 1]), self.R([1, 1])), 1)

class TestMultiPointEvaluation(unittest.TestCase):

    def check(self, f, xs):
        self.assertEqual(f.multi_point_evaluation(xs), [f.evaluate(x) for x in xs])

    def test_single_point(self):
        R = PolynomialRing(QQ)
        self.check(R([1, 2, 3]), [2])
        self.assertEqual(R([1, 2, 3]).multi_point_evaluation([2]), [17])

    def test_order_preserved(self):
        R = PolynomialRing(QQ)
        f = R([1, 2, 3])
        self.assertEqual(multi_point_evaluation(f, [2, 0, -1, 5]), [17, 1, 2, 86])

    def test_small_polynomials(self):
        # f smaller than the tree nodes, including constants and zero
        R = PolynomialRing(GF(LARGEST_u16_PRIME))
        xs = R.coeff_ring.rand_elems(20)
        for coeffs in ([0], [7], [1, 1], [1, 2, 3]):
            self.check(R(coeffs), xs)

    def test_random(self):
        for R in (PolynomialRing(GF(LARGEST_u16_PRIME)), PolynomialRing(QQ)):
            for n, length in ((3, 10), (8, 8), (17, 5), (40, 90)):
                xs = R.coeff_ring.rand_elems(n)
                f = Polynomial(R, [R.coeff_ring.rand_elem() for _ in range(length)])
                self.check(f, xs)

    def test_large(self):
        # enough points for the upper tree levels to go through the fast transform
        R = PolynomialRing(GF(NTT_PRIME))
        xs = R.coeff_ring.rand_elems(300)
        f = Polynomial(R, [R.coeff_ring.rand_elem() for _ in range(400)])
        self.check(f, xs)

    def test_repeated_points(self):
        R = PolynomialRing(QQ)
        self.check(R([5, -1, 0, 2]), [1, 1, 2, 1, Rational(1, 2)])

    def test_floating(self):
        R = PolynomialRing(RR)
        xs = [0.1 * i for i in range(12)]
        f = R([1.0, -0.5, 0.25, 2.0, 0.0, 1.0])
        self.assertTrue(np.allclose(f.multi_point_evaluation(xs), [f(x) for x in xs]))

class TestInterpolation(unittest.TestCase):

    def test_line(self):
        R = PolynomialRing(QQ)
        self.assertEqual(interpolate(R, [0, 1], [1, 3]), [1, 2])

    def test_recovers_polynomial(self):
        for R in (PolynomialRing(GF(LARGEST_u16_PRIME)), PolynomialRing(QQ), PolynomialRing(GF(NTT_PRIME))):
            for n in (1, 2, 7, 32, 65):
                xs = R.coeff_ring.rand_elems(n)
                f = Polynomial(R, [R.coeff_ring.rand_elem() for _ in range(n)])
                self.assertEqual(interpolate(R, xs, f.multi_point_evaluation(xs)), f)

    def test_values(self):
        R = PolynomialRing(GF(LARGEST_u16_PRIME))
        xs = R.coeff_ring.rand_elems(25)
        ys = R.coeff_ring.rand_elems(25)
        f = interpolate(R, xs, ys)
        self.assertLess(f.degree(), 25)
        self.assertEqual(f.multi_point_evaluation(xs), ys)

    def test_errors(self):
        R = PolynomialRing(QQ)
        with self.assertRaises(ValueError):
            interpolate(R, [1, 2, 1], [1, 2, 3])
        with self.assertRaises(ValueError):
            interpolate(R, [1, 2], [1])
