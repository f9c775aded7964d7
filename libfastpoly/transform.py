#!/usr/bin/env python3
#
#   Fast convolution of coefficient sequences
#

import logging
from functools import lru_cache, reduce

import numpy as np

from libfastpoly.basic_types import GF, FloatingField, Mod, Rational, RationalField, lcm

_logger = logging.getLogger(__name__)

# 119 * 2^23 + 1, supports transforms of length up to 2^23
NTT_PRIME = 998244353

def next_power_of_2(n : int) -> int:
    if n <= 1:
        return 1
    return 1 << (n - 1).bit_length()

def two_adicity(n : int) -> int:
    """
    Largest k such that 2^k divides n
    """
    return (n & -n).bit_length() - 1

########################################################################################################################
#   Number Theoretic Transform
########################################################################################################################

@lru_cache(maxsize=None)
def root_of_unity(modulus : int, order : int) -> int:
    """
    Finds an element of multiplicative order exactly `order` (a power of two) modulo the prime `modulus`.
    """
    assert order & (order - 1) == 0 , "order must be a power of two"
    assert (modulus - 1) % order == 0 , f"GF({modulus}) has no root of unity of order {order}"
    if order == 1:
        return 1
    for g in range(2, modulus):
        w = pow(g, (modulus - 1) // order, modulus)
        # w^order = 1 always, the order is exactly `order` iff w^(order/2) != 1
        if pow(w, order // 2, modulus) != 1:
            return w
    raise ValueError(f"no root of unity of order {order} modulo {modulus}")

def ntt(vals, modulus : int, root : int):
    """
    Iterative radix-2 transform of `vals` (length a power of two) where `root` is a primitive len(vals)-th root of
    unity modulo `modulus`.
    """
    n = len(vals)
    a = list(vals)

    # bit reversal permutation
    j = 0
    for i in range(1, n):
        bit = n >> 1
        while j & bit:
            j ^= bit
            bit >>= 1
        j ^= bit
        if i < j:
            a[i], a[j] = a[j], a[i]

    length = 2
    while length <= n:
        w_len = pow(root, n // length, modulus)
        half = length // 2
        for start in range(0, n, length):
            w = 1
            for k in range(start, start + half):
                u = a[k]
                v = a[k + half] * w % modulus
                a[k] = (u + v) % modulus
                a[k + half] = (u - v) % modulus
                w = w * w_len % modulus
        length <<= 1
    return a

def intt(vals, modulus : int, root : int):
    n = len(vals)
    inv_n = pow(n, modulus - 2, modulus)
    return [(v * inv_n) % modulus for v in ntt(vals, modulus, pow(root, modulus - 2, modulus))]

def ntt_convolve(a, b, modulus : int):
    """
    Convolution of two lists of residues modulo a prime with enough roots of unity of power-of-two order.
    """
    n = len(a) + len(b) - 1
    size = next_power_of_2(n)
    root = root_of_unity(modulus, size)
    fa = ntt(list(a) + [0] * (size - len(a)), modulus, root)
    fb = ntt(list(b) + [0] * (size - len(b)), modulus, root)
    return intt([x * y % modulus for x,y in zip(fa, fb)], modulus, root)[:n]

########################################################################################################################
#   Kronecker Substitution
########################################################################################################################

def _pack(vals, width : int) -> int:
    return int.from_bytes(b"".join(v.to_bytes(width, "little") for v in vals), "little")

def _unpack(value : int, width : int, n : int):
    data = value.to_bytes(width * n, "little")
    return [int.from_bytes(data[i * width:(i + 1) * width], "little") for i in range(n)]

def kronecker_convolve(a, b):
    """
    Exact convolution of two lists of non-negative integers via a single big integer product: each list is packed as
    the value of its polynomial at 2^(8 * width), with `width` large enough that no output coefficient overflows its
    slot.
    """
    n = len(a) + len(b) - 1
    bound = max(a) * max(b) * min(len(a), len(b))
    if bound == 0:
        return [0] * n
    width = (bound.bit_length() + 7) // 8
    return _unpack(_pack(a, width) * _pack(b, width), width, n)

def signed_kronecker_convolve(a, b):
    """
    Exact convolution of two lists of integers of any sign, split into non-negative parts
        (a+ - a-) * (b+ - b-) = a+ b+ - a+ b- - a- b+ + a- b-
    """
    ap = [max(v, 0) for v in a]
    an = [max(-v, 0) for v in a]
    bp = [max(v, 0) for v in b]
    bn = [max(-v, 0) for v in b]
    pos_pos = kronecker_convolve(ap, bp)
    pos_neg = kronecker_convolve(ap, bn)
    neg_pos = kronecker_convolve(an, bp)
    neg_neg = kronecker_convolve(an, bn)
    return [w - x - y + z for w,x,y,z in zip(pos_pos, pos_neg, neg_pos, neg_neg)]

########################################################################################################################
#   Floating Point FFT
########################################################################################################################

def fft_convolve(a, b, real : bool = True):
    """
    Convolution of two lists of floats (or complex numbers when `real` is False) with numpy's FFT, exact up to rounding.
    """
    n = len(a) + len(b) - 1
    size = next_power_of_2(n)
    if real:
        fa = np.fft.rfft(np.asarray(a, dtype=np.float64), size)
        fb = np.fft.rfft(np.asarray(b, dtype=np.float64), size)
        return [float(v) for v in np.fft.irfft(fa * fb, size)[:n]]
    fa = np.fft.fft(np.asarray(a, dtype=np.complex128), size)
    fb = np.fft.fft(np.asarray(b, dtype=np.complex128), size)
    return [complex(v) for v in np.fft.ifft(fa * fb, size)[:n]]

########################################################################################################################
#   Dispatch
########################################################################################################################

def convolve(a, b, coeff_ring):
    """
    Returns the full (untruncated) convolution of the coefficient lists `a` and `b`, whose elements belong to
    `coeff_ring`. The strategy depends on the field: exact transforms for GF(p) and QQ, numpy's FFT for RR and CC.
    """
    n = len(a) + len(b) - 1

    if isinstance(coeff_ring, GF):
        p = coeff_ring.p
        xa = [v.x for v in a]
        xb = [v.x for v in b]
        if next_power_of_2(n) <= 1 << two_adicity(p - 1):
            _logger.debug("convolve: NTT over GF(%d), %d x %d", p, len(a), len(b))
            out = ntt_convolve(xa, xb, p)
        else:
            _logger.debug("convolve: Kronecker substitution over GF(%d), %d x %d", p, len(a), len(b))
            out = kronecker_convolve(xa, xb)
        return [Mod(v, p) for v in out]

    if isinstance(coeff_ring, RationalField):
        _logger.debug("convolve: Kronecker substitution over QQ, %d x %d", len(a), len(b))
        da = reduce(lcm, (v.dnm for v in a), 1)
        db = reduce(lcm, (v.dnm for v in b), 1)
        ia = [v.num * (da // v.dnm) for v in a]
        ib = [v.num * (db // v.dnm) for v in b]
        return [Rational(v, da * db) for v in signed_kronecker_convolve(ia, ib)]

    if isinstance(coeff_ring, FloatingField):
        _logger.debug("convolve: numpy FFT over %r, %d x %d", coeff_ring, len(a), len(b))
        return fft_convolve(a, b, real=coeff_ring.is_real())

    raise TypeError(f"No fast convolution for coefficients in {coeff_ring!r}")

########################################################################################################################
#   Unit Tests
########################################################################################################################

import random
import unittest

from libfastpoly.basic_types import CC, LARGEST_s32_PRIME, LARGEST_u16_PRIME, QQ, RR, CoefficientRing

def direct_convolve(a, b, zero=0):
    out = [zero] * (len(a) + len(b) - 1)
    for i,x in enumerate(a):
        for j,y in enumerate(b):
            out[i + j] = out[i + j] + x * y
    return out

class TestHelpers(unittest.TestCase):

    def test_next_power_of_2(self):
        self.assertEqual([next_power_of_2(n) for n in (0, 1, 2, 3, 4, 5, 1000, 1024, 1025)],
                         [1, 1, 2, 4, 4, 8, 1024, 1024, 2048])

    def test_two_adicity(self):
        self.assertEqual(two_adicity(NTT_PRIME - 1), 23)
        self.assertEqual(two_adicity(LARGEST_u16_PRIME - 1), 4)
        self.assertEqual(two_adicity(12), 2)

    def test_root_of_unity(self):
        for order in (1, 2, 8, 1 << 10, 1 << 23):
            w = root_of_unity(NTT_PRIME, order)
            self.assertEqual(pow(w, order, NTT_PRIME), 1)
            if order > 1:
                self.assertNotEqual(pow(w, order // 2, NTT_PRIME), 1)

class TestNTT(unittest.TestCase):

    def test_inverse(self):
        vals = [random.randrange(NTT_PRIME) for _ in range(64)]
        root = root_of_unity(NTT_PRIME, 64)
        self.assertEqual(intt(ntt(vals, NTT_PRIME, root), NTT_PRIME, root), vals)

    def test_convolution(self):
        for la, lb in ((1, 1), (3, 5), (17, 40), (300, 257)):
            a = [random.randrange(NTT_PRIME) for _ in range(la)]
            b = [random.randrange(NTT_PRIME) for _ in range(lb)]
            expected = [v % NTT_PRIME for v in direct_convolve(a, b)]
            self.assertEqual(ntt_convolve(a, b, NTT_PRIME), expected)

class TestKronecker(unittest.TestCase):

    def test_unsigned(self):
        for la, lb in ((1, 1), (4, 9), (120, 77)):
            a = [random.randrange(LARGEST_s32_PRIME) for _ in range(la)]
            b = [random.randrange(LARGEST_s32_PRIME) for _ in range(lb)]
            self.assertEqual(kronecker_convolve(a, b), direct_convolve(a, b))

    def test_zero(self):
        self.assertEqual(kronecker_convolve([0, 0], [0, 0, 0]), [0, 0, 0, 0])

    def test_signed(self):
        for la, lb in ((1, 1), (5, 3), (90, 130)):
            a = [random.randint(-10**12, 10**12) for _ in range(la)]
            b = [random.randint(-10**6, 10**6) for _ in range(lb)]
            self.assertEqual(signed_kronecker_convolve(a, b), direct_convolve(a, b))

class TestFFT(unittest.TestCase):

    def test_real(self):
        a = [random.uniform(-1, 1) for _ in range(150)]
        b = [random.uniform(-1, 1) for _ in range(90)]
        self.assertTrue(np.allclose(fft_convolve(a, b), direct_convolve(a, b, 0.0)))

    def test_complex(self):
        a = [complex(random.uniform(-1, 1), random.uniform(-1, 1)) for _ in range(33)]
        b = [complex(random.uniform(-1, 1), random.uniform(-1, 1)) for _ in range(70)]
        self.assertTrue(np.allclose(fft_convolve(a, b, real=False), direct_convolve(a, b, 0j)))

class TestConvolve(unittest.TestCase):

    def check_exact(self, ring, la, lb):
        a = [ring.rand_elem() for _ in range(la)]
        b = [ring.rand_elem() for _ in range(lb)]
        self.assertEqual(convolve(a, b, ring), direct_convolve(a, b, ring(0)))

    def test_ntt_field(self):
        self.check_exact(GF(NTT_PRIME), 250, 300)

    def test_kronecker_field(self):
        # p - 1 = 2^4 * 4095, too few roots of unity for an NTT of this size
        self.check_exact(GF(LARGEST_u16_PRIME), 250, 300)
        self.check_exact(GF(LARGEST_s32_PRIME), 31, 64)

    def test_rationals(self):
        self.check_exact(QQ, 60, 45)
        a = [Rational(-1, 2), Rational(3, 7)]
        b = [Rational(2, 3), Rational(-5, 4), Rational(0, 1)]
        self.assertEqual(convolve(a, b, QQ), direct_convolve(a, b, QQ(0)))

    def test_floating(self):
        for ring in (RR, CC):
            a = [ring.rand_elem() for _ in range(120)]
            b = [ring.rand_elem() for _ in range(200)]
            out = convolve(a, b, ring)
            self.assertTrue(all(isinstance(v, ring.kind) for v in out))
            self.assertTrue(np.allclose(out, direct_convolve(a, b, ring(0))))

    def test_unknown_ring(self):
        with self.assertRaises(TypeError):
            convolve([1], [1], CoefficientRing())
