import unittest

from src.babbler.rng import (
    HASH_START,
    Xorshift32,
    derive_seed,
    hash_string,
    xorshift32,
)


class TestHashString(unittest.TestCase):
    def test_empty_string_returns_start_constant(self):
        self.assertEqual(hash_string(""), 3735928559)
        self.assertEqual(hash_string(""), HASH_START)

    def test_single_byte(self):
        # (0xDEADBEEF + 97) * 13 << 8, all mod 2**32, then mod 2**31 - 1
        self.assertEqual(hash_string("a"), 1387728897)

    def test_is_deterministic_and_bounded(self):
        for text in ["/babble/", "/babble/foo/bar/1/", "ünïcödé"]:
            value = hash_string(text)
            self.assertEqual(value, hash_string(text))
            self.assertLess(value, 2**31 - 1)

    def test_different_paths_hash_differently(self):
        self.assertNotEqual(hash_string("/babble/a/"), hash_string("/babble/b/"))

    def test_derive_seed_never_zero(self):
        self.assertEqual(derive_seed(""), HASH_START)
        self.assertEqual(derive_seed("a"), hash_string("a"))


class TestXorshift(unittest.TestCase):
    def test_known_sequence_from_one(self):
        value, state = xorshift32(1)
        self.assertEqual((value, state), (270369, 270369))
        value, state = xorshift32(state)
        self.assertEqual(value, 67634689)

    def test_zero_is_fixed_point(self):
        state = 0
        for _ in range(100):
            value, state = xorshift32(state)
            self.assertEqual((value, state), (0, 0))

    def test_state_stays_32_bit(self):
        state = 0xFFFFFFFF
        for _ in range(1000):
            _, state = xorshift32(state)
            self.assertTrue(0 < state <= 0xFFFFFFFF)

    def test_generator_matches_function(self):
        rng = Xorshift32(1)
        self.assertEqual(rng.next(), 270369)
        self.assertEqual(rng.state, 270369)
        self.assertEqual(rng.next(), 67634689)

    def test_generator_rejects_zero_seed(self):
        with self.assertRaises(ValueError):
            Xorshift32(0)
        with self.assertRaises(ValueError):
            Xorshift32(2**32)

    def test_identical_seeds_reproduce(self):
        a, b = Xorshift32(12345), Xorshift32(12345)
        self.assertEqual([a.next() for _ in range(50)], [b.next() for _ in range(50)])

    def test_copy_is_independent(self):
        rng = Xorshift32(99)
        clone = rng.copy()
        first = rng.next()
        self.assertEqual(clone.next(), first)
        rng.next()
        self.assertNotEqual(rng.state, clone.state)

    def test_uniform_range(self):
        rng = Xorshift32(7)
        for _ in range(1000):
            value = rng.uniform()
            self.assertGreaterEqual(value, 0.0)
            self.assertLess(value, 1.0)

    def test_advance_wraps(self):
        rng = Xorshift32(0xFFFFFFFF)
        rng.advance(2)
        self.assertEqual(rng.state, 1)


if __name__ == "__main__":
    unittest.main()
