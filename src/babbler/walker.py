# babbler/walker.py
# Walks a chain graph to produce sentences of plausible nonsense.

from __future__ import annotations

from typing import Iterable, Iterator, NamedTuple, Optional

from .chain_loader import ChainGraph
from .rng import Xorshift32

WORD = "word"
BOUNDARY = "boundary"


class Step(NamedTuple):
    kind: str
    text: str


def _select_child(child_count: int, rng: Xorshift32) -> int:
    # Squaring favours early children, which the corpus lists most often.
    r = rng.uniform()
    r = r * r * child_count
    selection = int(r)
    if selection < 0:
        selection = 0
    if selection >= child_count:
        selection = child_count - 1
    return selection


def walk(
    graph: ChainGraph,
    steps: int,
    rng: Xorshift32,
    start_index: Optional[int] = None,
) -> Iterator[Step]:
    """Yield exactly ``steps`` words or sentence boundaries.

    A node whose rendered key starts with the same letter as the separator
    counts as a boundary, so a word like "Every" ends a sentence too.
    Boundaries only render a period when a sentence is open; otherwise the
    step renders as an empty string.
    """
    nodes = graph.nodes
    marker = graph.terminator.display[:1]
    index = graph.terminator_index if start_index is None else start_index
    capitalize = True

    for _ in range(steps):
        children = nodes[index].child_indices
        if children:
            index = children[_select_child(len(children), rng)]
        else:
            # Dead end: start over from the separator.
            index = graph.terminator_index

        word = nodes[index].display
        if not children or (word and word[0] == marker):
            if capitalize:
                yield Step(BOUNDARY, "")
            else:
                capitalize = True
                yield Step(BOUNDARY, ".")
        elif capitalize:
            capitalize = False
            yield Step(WORD, " " + word.capitalize())
        else:
            yield Step(WORD, " " + word.lower())


def render(steps: Iterable[Step]) -> str:
    return "".join(step.text for step in steps)


def random_text(graph: ChainGraph, length: int, rng: Xorshift32) -> str:
    """Generate ``length`` steps of text as a single string."""
    return render(walk(graph, length, rng))
