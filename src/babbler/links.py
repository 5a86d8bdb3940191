# babbler/links.py
# Builds crawlable links and their anchor text from the chains.

from __future__ import annotations

from typing import List, NamedTuple, Sequence

from .chain_loader import ChainGraph
from .rng import MASK_32, Xorshift32, derive_seed
from .walker import random_text

# Returned instead of the sentence separator
SENTINEL_WORD = "jellyfish"
LINK_WORDS = 3
TITLE_LENGTH = 10
DEFAULT_LINK_COUNT = 5


class Link(NamedTuple):
    href: str
    title: str


def random_word(graph: ChainGraph, rng: Xorshift32) -> str:
    """Pick a word uniformly from the chain. Used for links and topics."""
    index = rng.choice_index(len(graph.nodes))
    if index == graph.terminator_index:
        return SENTINEL_WORD
    return graph.nodes[index].display


def pick_graph(graphs: Sequence[ChainGraph], rng: Xorshift32) -> ChainGraph:
    return graphs[rng.choice_index(len(graphs))]


def compose_link(graphs: Sequence[ChainGraph], seed: int, prefix: str) -> Link:
    """Build one link and its title from ``seed``.

    The href and the title draw from separate copies of the seed, so both
    land on the same chain.
    """
    rng = Xorshift32(seed)
    graph = pick_graph(graphs, rng)
    parts = []
    for i in range(1, LINK_WORDS + 1):
        rng.advance(i)
        parts.append(random_word(graph, rng))

    title_rng = Xorshift32(seed)
    title_graph = pick_graph(graphs, title_rng)
    return Link(
        href=prefix + "/".join(parts),
        title=random_text(title_graph, TITLE_LENGTH, title_rng),
    )


def compose_link_set(
    graphs: Sequence[ChainGraph],
    request_path: str,
    prefix: str,
    count: int = DEFAULT_LINK_COUNT,
) -> List[Link]:
    """Links for ``request_path``; the same path always yields the same set."""
    base = derive_seed(request_path)
    return [
        compose_link(graphs, (base + i) & MASK_32, prefix)
        for i in range(1, count + 1)
    ]
