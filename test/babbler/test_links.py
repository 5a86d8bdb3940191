import unittest

from src.babbler.chain_loader import parse_chain
from src.babbler.links import (
    SENTINEL_WORD,
    compose_link,
    compose_link_set,
    random_word,
)
from src.babbler.rng import Xorshift32, derive_seed

from .corpus_fixtures import CHAIN, TINY_CHAIN


class TestRandomWord(unittest.TestCase):
    def test_never_returns_separator(self):
        graph = parse_chain(CHAIN)
        rng = Xorshift32(1)
        seen_sentinel = False
        for _ in range(2000):
            word = random_word(graph, rng)
            self.assertNotEqual(word, "END")
            seen_sentinel = seen_sentinel or word == SENTINEL_WORD
        self.assertTrue(seen_sentinel)

    def test_sentinel_substituted_for_separator_index(self):
        graph = parse_chain(TINY_CHAIN)
        # First draw from state 1 is 270369; 270369 % 3 == 0, the separator.
        self.assertEqual(random_word(graph, Xorshift32(1)), SENTINEL_WORD)

    def test_returns_display_word(self):
        graph = parse_chain(["big-1 END", "END big-1"])
        rng = Xorshift32(1)
        words = {random_word(graph, rng) for _ in range(50)}
        self.assertEqual(words, {"big", SENTINEL_WORD})


class TestComposeLinks(unittest.TestCase):
    def setUp(self):
        self.graphs = (parse_chain(CHAIN), parse_chain(TINY_CHAIN))

    def test_link_shape(self):
        link = compose_link(self.graphs, 1234, "/babble/")
        self.assertTrue(link.href.startswith("/babble/"))
        self.assertEqual(len(link.href[len("/babble/"):].split("/")), 3)
        self.assertTrue(link.title)

    def test_same_path_same_links(self):
        first = compose_link_set(self.graphs, "/babble/x/", "/babble/")
        second = compose_link_set(self.graphs, "/babble/x/", "/babble/")
        self.assertEqual(first, second)
        self.assertEqual(len(first), 5)

    def test_different_paths_differ(self):
        first = compose_link_set(self.graphs, "/babble/x/", "/babble/")
        second = compose_link_set(self.graphs, "/babble/y/", "/babble/")
        self.assertNotEqual(first, second)

    def test_each_link_uses_its_own_offset(self):
        base = derive_seed("/")
        links = compose_link_set(self.graphs, "/", "/b/", count=3)
        for i, link in enumerate(links, start=1):
            self.assertEqual(link, compose_link(self.graphs, base + i, "/b/"))

    def test_count(self):
        self.assertEqual(compose_link_set(self.graphs, "/", "/b/", count=0), [])


if __name__ == "__main__":
    unittest.main()
