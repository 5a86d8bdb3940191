"""Small chains shared by the babbler tests."""

import os
import tempfile

TINY_CHAIN = [
    "END cat dog",
    "cat dog END",
    "dog cat END",
]

# Every child is defined; "fast" only follows verbs.
CHAIN = [
    "END the the the a dogs cats",
    "the dog dog cat house river",
    "a dog cat river",
    "dogs run run sleep END",
    "cats sleep run END",
    "dog runs runs sleeps barks END",
    "cat sleeps runs END",
    "house stands END",
    "river flows flows END",
    "run END fast",
    "sleep END",
    "runs fast END",
    "sleeps END",
    "barks END",
    "stands END",
    "flows END",
    "fast END",
]


def write_chain(lines, directory=None, name="chain.txt"):
    directory = directory or tempfile.mkdtemp(prefix="babbler-test-")
    path = os.path.join(directory, name)
    with open(path, "w", encoding="utf-8") as f:
        f.write("\n".join(lines) + "\n")
    return path
