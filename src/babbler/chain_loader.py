# babbler/chain_loader.py
# Loads Markov chain corpus files into immutable word graphs.

from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from typing import Iterable, List, Tuple

logger = logging.getLogger(__name__)

# Maximum number of child words kept for a single word
MAX_LEAF = 30
# Key of the sentence separator node
TERMINATOR = "END"


class BabblerError(Exception):
    """Base class for babbler errors."""


class ChainLoadError(BabblerError):
    """A corpus file is unreadable or does not describe a complete chain."""


@dataclass(frozen=True)
class WordNode:
    key: str
    display: str
    children: Tuple[str, ...]
    child_indices: Tuple[int, ...]


@dataclass(frozen=True)
class ChainGraph:
    nodes: Tuple[WordNode, ...]
    terminator_index: int
    source: str = "<memory>"

    def __len__(self) -> int:
        return len(self.nodes)

    @property
    def terminator(self) -> WordNode:
        return self.nodes[self.terminator_index]


def _tokenize(lines: Iterable[str]) -> List[Tuple[str, List[str]]]:
    entries = []
    for line in lines:
        words = line.split()
        if not words:
            continue
        entries.append((words[0], words[1 : MAX_LEAF + 1]))
    return entries


def parse_chain(lines: Iterable[str], source: str = "<memory>") -> ChainGraph:
    """Build a :class:`ChainGraph` from corpus lines.

    Each line is ``<key> <child> <child> ...``. Repeated children are kept,
    they weight the walk towards that word. Every child must name a key
    defined somewhere in the corpus and an ``END`` line must exist.
    """
    entries = _tokenize(lines)

    first_index = {}
    for index, (key, _) in enumerate(entries):
        first_index.setdefault(key, index)

    if TERMINATOR not in first_index:
        raise ChainLoadError(
            f"Sentence separator '{TERMINATOR}' not found in chain {source}"
        )

    nodes = []
    for key, children in entries:
        indices = []
        for child in children:
            try:
                indices.append(first_index[child])
            except KeyError:
                raise ChainLoadError(
                    f"No matching entry found for word '{child}' "
                    f"(child of '{key}') in chain {source}"
                ) from None
        # Truncating at hyphens only affects rendering; edges are resolved.
        display = key.split("-", 1)[0]
        nodes.append(
            WordNode(
                key=key,
                display=display,
                children=tuple(children),
                child_indices=tuple(indices),
            )
        )

    return ChainGraph(
        nodes=tuple(nodes),
        terminator_index=first_index[TERMINATOR],
        source=source,
    )


def load_chain(path: str) -> ChainGraph:
    """Load a corpus file, raising :class:`ChainLoadError` on any problem."""
    source = os.path.basename(path) or path
    logger.info(f"Loading chain {path}...")
    try:
        with open(path, "r", encoding="utf-8") as f:
            graph = parse_chain(f, source=source)
    except OSError as e:
        raise ChainLoadError(f"Failed to open chain file {path}: {e}") from e
    except UnicodeDecodeError as e:
        raise ChainLoadError(f"Chain file {path} is not valid UTF-8: {e}") from e
    logger.info(
        f"Loaded chain {source}: {len(graph)} words, separator at index "
        f"{graph.terminator_index}"
    )
    return graph
