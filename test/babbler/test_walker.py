import unittest

from src.babbler.chain_loader import parse_chain
from src.babbler.rng import Xorshift32
from src.babbler.walker import BOUNDARY, WORD, random_text, render, walk

from .corpus_fixtures import CHAIN, TINY_CHAIN


class TestWalk(unittest.TestCase):
    def setUp(self):
        self.graph = parse_chain(CHAIN)

    def test_walk_emits_exactly_n_steps(self):
        for seed in (1, 2, 12345, 0xDEADBEEF):
            for n in (0, 1, 7, 200):
                steps = list(walk(self.graph, n, Xorshift32(seed)))
                self.assertEqual(len(steps), n)
                for step in steps:
                    self.assertIn(step.kind, (WORD, BOUNDARY))

    def test_walk_is_deterministic(self):
        a = render(walk(self.graph, 100, Xorshift32(42)))
        b = render(walk(self.graph, 100, Xorshift32(42)))
        self.assertEqual(a, b)
        self.assertNotEqual(a, render(walk(self.graph, 100, Xorshift32(43))))

    def test_walk_is_lazy(self):
        rng = Xorshift32(5)
        steps = walk(self.graph, 10, rng)
        self.assertEqual(rng.state, 5)
        next(steps)
        self.assertNotEqual(rng.state, 5)

    def test_words_are_space_separated_and_capitalized(self):
        steps = list(walk(self.graph, 300, Xorshift32(9)))
        capitalize = True
        for step in steps:
            if step.kind == BOUNDARY:
                self.assertIn(step.text, (".", ""))
                if step.text == ".":
                    self.assertFalse(capitalize)
                capitalize = True
                continue
            self.assertTrue(step.text.startswith(" "))
            word = step.text[1:]
            if capitalize:
                self.assertEqual(word, word.capitalize())
                capitalize = False
            else:
                self.assertEqual(word, word.lower())

    def test_tiny_chain_alternates(self):
        graph = parse_chain(TINY_CHAIN)
        text = random_text(graph, 50, Xorshift32(3))
        self.assertTrue(text)
        self.assertTrue(set(text.replace(".", " ").lower().split()) <= {"cat", "dog"})

    def test_separator_letter_heuristic_ends_sentences(self):
        # "Echo" starts with the separator's first letter and counts as a
        # boundary even though it is an ordinary word.
        graph = parse_chain(["END Echo", "Echo Echo"])
        steps = list(walk(graph, 5, Xorshift32(11)))
        self.assertEqual([s.kind for s in steps], [BOUNDARY] * 5)
        self.assertNotIn("Echo", render(steps))

    def test_hyphenated_keys_render_truncated(self):
        graph = parse_chain(["END big-1", "big-1 big-2", "big-2 END"])
        text = random_text(graph, 3, Xorshift32(1))
        self.assertEqual(text, " Big big.")

    def test_dead_end_restarts_sentence(self):
        graph = parse_chain(["END stop", "stop"])
        steps = list(walk(graph, 4, Xorshift32(8)))
        self.assertEqual(
            [s.kind for s in steps], [WORD, BOUNDARY, WORD, BOUNDARY]
        )
        self.assertEqual(render(steps), " Stop. Stop.")

    def test_start_index(self):
        graph = parse_chain(["END a", "a b", "b END"])
        steps = list(walk(graph, 1, Xorshift32(1), start_index=1))
        self.assertEqual(steps[0].text, " B")


if __name__ == "__main__":
    unittest.main()
