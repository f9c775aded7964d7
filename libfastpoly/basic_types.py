#!/usr/bin/env python3

import random
from functools import lru_cache
from typing import Union

def gcd(a, b):
    while b != 0:
        a %= b
        a,b = b,a
    return abs(a)

def lcm(a, b):
    return abs(a * b) // gcd(a, b)

def xgcd(a, b):
    prevx, x = 1, 0
    prevy, y = 0, 1
    while b != 0:
        q, r = divmod(a, b)
        x, prevx = prevx - q * x, x
        y, prevy = prevy - q * y, y
        a, b = b, r
    return a, prevx, prevy

# At most 2^16 cached (x, p) pairs
@lru_cache(maxsize=1 << 16)
def mod_inverse(x : int, p : int) -> int:
    """
    Inverse of x modulo p by the extended Euclidean algorithm, only valid when p is prime and x != 0 mod p
    """
    _,inv,_ = xgcd(x, p)
    return inv % p

# Various useful primes
LARGEST_s32_PRIME = 2147483647
LARGEST_u16_PRIME = 65521

########################################################################################################################
#   Modular Arithmetic
########################################################################################################################

class Mod:
    """
    Arithmetic in GF(p)
    """

    __slots__ = ('x', 'p')

    def __init__(self, x : int, p : int):
        self.x = x
        self.p = p

        if not 0 <= self.x < self.p:
            self.x %= self.p

    def __str__(self):
        return str(self.x)

    def __repr__(self):
        return f"Mod({self.x}, {self.p})"

    def __hash__(self):
        return hash((self.x, self.p))

    def cvt_other(self, other):
        if isinstance(other, int):
            return Mod(other, self.p)
        if isinstance(other, Rational):
            return other.to_mod(self.p)
        if isinstance(other, Mod):
            assert self.p == other.p , "Elements of different prime fields"
            return other
        return None

    def __add__(self, other):
        other = self.cvt_other(other)
        if other is None:
            return NotImplemented
        r = self.x + other.x
        if r >= self.p:
            r -= self.p
        return Mod(r, self.p)

    def __radd__(self, other):
        return self.__add__(other)

    def __sub__(self, other):
        other = self.cvt_other(other)
        if other is None:
            return NotImplemented
        r = self.x - other.x
        if r < 0:
            r += self.p
        return Mod(r, self.p)

    def __rsub__(self, other):
        other = self.cvt_other(other)
        if other is None:
            return NotImplemented
        return other - self

    def __mul__(self, other):
        other = self.cvt_other(other)
        if other is None:
            return NotImplemented
        return Mod(self.x * other.x, self.p)

    def __rmul__(self, other):
        return self.__mul__(other)

    def __pow__(self, other):
        assert isinstance(other, int)
        if other < 0:
            return (~self) ** -other
        return Mod(pow(self.x, other, self.p), self.p)

    def __invert__(self):
        """
        Multiplicative inverse
        """
        if self.x == 0:
            raise ZeroDivisionError(f"0 has no inverse in GF({self.p})")

        return Mod(mod_inverse(self.x, self.p), self.p)

    def __neg__(self):
        """
        Additive inverse
        """
        return Mod(self.p - self.x, self.p)

    def __truediv__(self, other):
        other = self.cvt_other(other)
        if other is None:
            return NotImplemented
        return self * ~other

    def __rtruediv__(self, other):
        other = self.cvt_other(other)
        if other is None:
            return NotImplemented
        return other / self

    def __eq__(self, other):
        if isinstance(other, Mod):
            # Same field
            assert self.p == other.p
            return self.x == other.x
        elif isinstance(other, int):
            # Test equality mod p
            return self.x == other % self.p
        elif isinstance(other, Rational):
            return self.x == other.to_mod(self.p).x
        return NotImplemented

########################################################################################################################
#   Rational Numbers
########################################################################################################################

class Rational:
    def __init__(self, num : int, dnm : int):
        self.num = num
        self.dnm = dnm
        self.canonicalise()

    def tup(self):
        return self.num, self.dnm

    def __str__(self):
        if self.dnm == 1:
            return f"{self.num}"
        return f"{self.num}/{self.dnm}"

    def __repr__(self):
        return f"Rational({self.num}, {self.dnm})"

    def __hash__(self):
        return hash(self.tup())

    def canonicalise(self):
        # For consistency, require denominator 1 when numerator is 0
        if self.num == 0:
            self.dnm = 1
            return
        # Check div0, denominator can be 0 only when numerator is 0
        if self.dnm == 0:
            raise ZeroDivisionError(f"{self.num}/0")
        # Move sign out of the denominator
        if self.dnm < 0:
            self.dnm = -self.dnm
            self.num = -self.num
        # Remove common factors
        g = gcd(self.num, self.dnm)
        self.num //= g
        self.dnm //= g

    def cvt_other(self, other):
        if isinstance(other, int):
            return Rational(other, 1)
        if isinstance(other, Rational):
            return other
        return None

    def __add__(self, other):
        other = self.cvt_other(other)
        if other is None:
            return NotImplemented
        return Rational(self.num * other.dnm + self.dnm * other.num, self.dnm * other.dnm)

    def __radd__(self, other):
        return self.__add__(other)

    def __sub__(self, other):
        other = self.cvt_other(other)
        if other is None:
            return NotImplemented
        return Rational(self.num * other.dnm - self.dnm * other.num, self.dnm * other.dnm)

    def __rsub__(self, other):
        other = self.cvt_other(other)
        if other is None:
            return NotImplemented
        return Rational(self.dnm * other.num - self.num * other.dnm, self.dnm * other.dnm)

    def __mul__(self, other):
        other = self.cvt_other(other)
        if other is None:
            return NotImplemented
        return Rational(self.num * other.num, self.dnm * other.dnm)

    def __rmul__(self, other):
        return self.__mul__(other)

    def __truediv__(self, other):
        other = self.cvt_other(other)
        if other is None:
            return NotImplemented
        return Rational(self.num * other.dnm, self.dnm * other.num)

    def __rtruediv__(self, other):
        other = self.cvt_other(other)
        if other is None:
            return NotImplemented
        return Rational(other.num * self.dnm, other.dnm * self.num)

    def __pow__(self, other):
        assert isinstance(other, int)
        if other < 0:
            return (~self) ** -other
        return Rational(self.num ** other, self.dnm ** other)

    def __invert__(self):
        return Rational(self.dnm, self.num)

    def __neg__(self):
        return Rational(-self.num, self.dnm)

    def __eq__(self, other):
        other = self.cvt_other(other)
        if other is None:
            return NotImplemented
        return self.num == other.num and self.dnm == other.dnm

    def to_mod(self, p):
        return Mod(self.num, p) * ~Mod(self.dnm, p)

########################################################################################################################
#   Coefficient Rings
########################################################################################################################

class CoefficientRing:
    """
    A coefficient field. Calling the ring converts small integers (and other compatible scalars) into elements.
    """

    def __call__(self, arg):
        raise NotImplementedError()

    def zero(self):
        return self(0)

    def one(self):
        return self(1)

    def rand_elem(self, min : int = 0):
        raise NotImplementedError()

    def rand_elems(self, num : int, min : int = 0, max : int = 0):
        raise NotImplementedError()

    def is_exact(self):
        return True

class RationalField(CoefficientRing):
    def __call__(self, arg : Union[Rational, int]):
        if isinstance(arg, Rational):
            return arg
        elif isinstance(arg, int):
            return Rational(arg, 1)
        else:
            raise ValueError(f"{arg} cannot be a member of a rational field")

    def __eq__(self, other):
        return isinstance(other, RationalField)

    def __hash__(self):
        return hash(RationalField)

    def __str__(self):
        return "The Rational Numbers"

    def __repr__(self):
        return "QQ"

    def rand_elem(self, min : int = 0):
        # Bounds are arbitrary for testing purposes
        return Rational(random.randint(min, 100), random.randint(1, 100))

    def rand_elems(self, num : int, min : int = 0, max : int = 0):
        # Distinct elements, bounds are arbitrary for testing purposes
        elems = set()
        while len(elems) < num:
            elems.add(Rational(random.randint(min, 100 + num + max), random.randint(1, 100)))
        return list(elems)

QQ = RationalField()

class GF(CoefficientRing):
    def __init__(self, p : int):
        assert p > 1
        self.p = p

    def __repr__(self):
        return f"GF({self.p})"

    def __str__(self):
        return repr(self)

    def __eq__(self, other):
        if isinstance(other, GF):
            return self.p == other.p
        return False

    def __hash__(self):
        return hash((GF, self.p))

    def __call__(self, arg : Union[Mod, int]):
        if isinstance(arg, Mod):
            return arg if arg.p == self.p else Mod(arg.x, self.p)
        elif isinstance(arg, int):
            return Mod(arg, self.p)
        elif isinstance(arg, Rational):
            return Mod(arg.num, self.p) / Mod(arg.dnm, self.p)
        else:
            raise ValueError(f"{arg} cannot be a member of a prime field")

    def rand_elem(self, min : int = 0):
        return Mod(random.randint(min, self.p - 1), self.p)

    def rand_elems(self, num : int, min : int = 0, max : int = 0):
        samp = random.sample(range(min, self.p + max), num)
        return [Mod(x, self.p) for x in samp]

class FloatingField(CoefficientRing):
    """
    Machine floating point numbers standing in for the reals (float) or the complex numbers (complex). Arithmetic is
    subject to rounding, so results are only ever equal up to a tolerance.
    """

    def __init__(self, kind : type, name : str):
        assert kind in (float, complex)
        self.kind = kind
        self.name = name

    def __repr__(self):
        return self.name

    def __str__(self):
        return f"Floating point numbers ({self.kind.__name__})"

    def __eq__(self, other):
        if isinstance(other, FloatingField):
            return self.kind is other.kind
        return False

    def __hash__(self):
        return hash((FloatingField, self.kind))

    def __call__(self, arg):
        if isinstance(arg, Rational):
            return self.kind(arg.num / arg.dnm)
        elif isinstance(arg, (int, float, complex)):
            return self.kind(arg)
        else:
            raise ValueError(f"{arg} cannot be a member of {self.name}")

    def is_real(self):
        return self.kind is float

    def is_exact(self):
        return False

    def rand_elem(self, min : int = 0):
        # Bounds are arbitrary for testing purposes
        if self.is_real():
            return random.uniform(min, min + 1)
        return complex(random.uniform(min, min + 1), random.uniform(min, min + 1))

    def rand_elems(self, num : int, min : int = 0, max : int = 0):
        return [self.rand_elem(min) for _ in range(num)]

RR = FloatingField(float, "RR")
CC = FloatingField(complex, "CC")

########################################################################################################################
#   Unit Tests
########################################################################################################################

import unittest

class TestGCD(unittest.TestCase):

    def test_gcd(self):
        self.assertEqual(gcd(4, 3), 1)
        self.assertEqual(gcd(12, 3), 3)
        self.assertEqual(gcd(21, 9), 3)
        self.assertEqual(gcd(12, 4), 4)
        self.assertEqual(gcd(49, 7), 7)
        self.assertEqual(gcd(1, 2), 1)
        self.assertEqual(gcd(1, -2), gcd(1, 2))
        self.assertEqual(gcd(-1, 2), gcd(1, 2))
        self.assertEqual(gcd(-1, -2), gcd(1, 2))

    def test_lcm(self):
        self.assertEqual(lcm(4, 6), 12)
        self.assertEqual(lcm(7, 5), 35)
        self.assertEqual(lcm(-3, 9), 9)

    def test_xgcd(self):
        self.assertEqual(xgcd(30, 18), (6, -1, 2))
        self.assertEqual(xgcd(18, 30), (6, 2, -1))
        self.assertEqual(xgcd(2, -1), (-1, 0, 1))

class TestMod(unittest.TestCase):

    def test_conversion(self):
        for _ in range(10000):
            p = random.randint(2, 65525)
            x = random.randint(2, 65525)
            self.assertEqual(Mod(x, p), x % p)

    def test_addition(self):
        for _ in range(10000):
            p = random.randint(2, 65525)
            x1 = random.randint(2, 65525)
            x2 = random.randint(2, 65525)
            self.assertEqual(Mod(x1, p) + Mod(x2, p), (x1 + x2) % p)

    def test_subtraction(self):
        for _ in range(10000):
            p = random.randint(2, 65525)
            x1 = random.randint(2, 65525)
            x2 = random.randint(2, 65525)
            self.assertEqual(Mod(x1, p) - Mod(x2, p), (x1 - x2) % p)
            self.assertEqual(x1 - Mod(x2, p), (x1 - x2) % p)

    def test_multiplication(self):
        for _ in range(10000):
            p = random.randint(2, 65525)
            x1 = random.randint(2, 65525)
            x2 = random.randint(2, 65525)
            self.assertEqual(Mod(x1, p) * Mod(x2, p), (x1 * x2) % p)

    def test_inversion(self):
        ps = [65413, 65419, 65423, 65437, 65447, 65449, 65479, 65497, 65519, 65521]
        for p in ps:
            x = Mod(random.randint(2, p - 1), p)
            ix = ~x
            self.assertEqual(x * ix, 1)
            self.assertEqual(~ix, x)

    def test_inverse_of_zero(self):
        with self.assertRaises(ZeroDivisionError):
            ~Mod(0, LARGEST_u16_PRIME)

    def test_inverse_cache_is_bounded(self):
        p = LARGEST_s32_PRIME
        for x in random.sample(range(1, p), 3 * mod_inverse.cache_info().maxsize // 2):
            self.assertEqual(Mod(x, p) * ~Mod(x, p), 1)
        self.assertLessEqual(mod_inverse.cache_info().currsize, mod_inverse.cache_info().maxsize)

    def test_division(self):
        ps = [65413, 65419, 65423, 65437, 65447, 65449, 65479, 65497, 65519, 65521]
        for p in ps:
            x1 = Mod(random.randint(2, p - 1), p)
            x2 = Mod(random.randint(2, p - 1), p)
            self.assertEqual(x1 / x2, x1 * ~x2)
            self.assertEqual(1 / x2, ~x2)

    def test_negation(self):
        for _ in range(10000):
            p = random.randint(2, 65525)
            x = random.randint(2, 65525)
            self.assertEqual(-Mod(x, p), (-x) % p)

    def test_power(self):
        F = GF(509)
        self.assertEqual(F(3) ** 4, 81)
        self.assertEqual(F(3) ** -1, ~F(3))

    def test_unrelated_types(self):
        self.assertNotEqual(Mod(1, 7), "1")
        with self.assertRaises(TypeError):
            Mod(1, 7) + "1"

class TestRational(unittest.TestCase):

    def test_conversion(self):
        self.assertEqual(Rational(0, 0).tup(), (0, 1))
        self.assertEqual(Rational(6, 3).tup(), (2, 1))
        self.assertEqual(Rational(7*4, 3*4).tup(), (7, 3))
        self.assertEqual(Rational(1, -2).tup(), (-1, 2))

    def test_addition(self):
        self.assertEqual((Rational(1, 3) + Rational(1, 3)).tup(), (2, 3))
        self.assertEqual((Rational(4, 5) + Rational(6, 7)).tup(), (58, 35))
        self.assertEqual((Rational(3, 6) + Rational(3, 4)).tup(), (5, 4))
        self.assertEqual((Rational(7, 8) + Rational(5, 6)).tup(), (41, 24))
        self.assertEqual((Rational(4, 3) + Rational(6, 3)).tup(), (10, 3))

    def test_multiplication(self):
        self.assertEqual((Rational(1, 3) * Rational(9, 7)).tup(), (3, 7))
        self.assertEqual((Rational(4, 5) * Rational(12, 11)).tup(), (48, 55))
        self.assertEqual((Rational(3, 2) * Rational(-1, 2)).tup(), (-3, 4))

    def test_inversion(self):
        self.assertEqual((~Rational(2, 3)).tup(), (3, 2))
        self.assertEqual((~Rational(2, -3)).tup(), (-3, 2))

        with self.assertRaises(ZeroDivisionError):
            ~Rational(0, 0)

    def test_division(self):
        self.assertEqual((Rational(2, 3) / Rational(3, 4)).tup(), (8, 9))
        self.assertEqual((Rational(3, 5) / Rational(8, 7)).tup(), (21, 40))
        self.assertEqual((Rational(0, 1) / Rational(4, 1)).tup(), (0, 1))
        self.assertEqual((1 / Rational(4, 1)).tup(), (1, 4))

    def test_to_mod(self):
        F = GF(LARGEST_u16_PRIME)
        self.assertEqual(F(Rational(1, 2)) * 2, 1)
        self.assertEqual(Rational(3, 4).to_mod(LARGEST_u16_PRIME) * 4, 3)

    def test_str(self):
        self.assertEqual(str(Rational(3, 1)), "3")
        self.assertEqual(str(Rational(-3, 6)), "-1/2")

class TestCoefficientRings(unittest.TestCase):

    def test_small_integers(self):
        for ring in (GF(509), QQ, RR, CC):
            self.assertEqual(ring(0), 0)
            self.assertEqual(ring(1), 1)
            self.assertEqual(ring.zero() + ring.one(), ring(1))
            self.assertEqual(ring(3) * ring(5), ring(15))

    def test_field_division(self):
        for ring in (GF(509), QQ):
            a = ring(7)
            self.assertEqual(a / a, ring.one())
            self.assertEqual(ring(1) / ring(7) * ring(7), ring(1))

    def test_floating(self):
        self.assertIsInstance(RR(3), float)
        self.assertIsInstance(CC(3), complex)
        self.assertEqual(RR(Rational(1, 4)), 0.25)
        self.assertFalse(RR.is_exact())
        self.assertTrue(QQ.is_exact())
        with self.assertRaises(ValueError):
            RR("1")

    def test_ring_equality(self):
        self.assertEqual(GF(7), GF(7))
        self.assertNotEqual(GF(7), GF(11))
        self.assertNotEqual(GF(7), QQ)
        self.assertNotEqual(RR, CC)

