# babbler/graph_store.py
# Publish-once holder for the loaded chains.

from __future__ import annotations

import asyncio
import enum
import logging
import threading
from typing import Callable, Optional, Sequence, Tuple

from src.shared.metrics import CORPUS_NODES
from src.shared.observability import trace_span

from .chain_loader import ChainGraph, ChainLoadError, load_chain

logger = logging.getLogger(__name__)

GraphSet = Tuple[ChainGraph, ...]


class StoreState(str, enum.Enum):
    LOADING = "loading"
    READY = "ready"
    FAILED = "failed"


class GraphStore:
    """Holds the chains once loading has finished.

    The graph set is assigned exactly once and never mutated afterwards, so
    request handlers read it without locking. Handlers take one
    :meth:`snapshot` per request and use that reference throughout.
    """

    def __init__(self) -> None:
        self._graphs: Optional[GraphSet] = None
        self._error: Optional[BaseException] = None
        self._publish_lock = threading.Lock()

    @property
    def state(self) -> StoreState:
        if self._graphs is not None:
            return StoreState.READY
        if self._error is not None:
            return StoreState.FAILED
        return StoreState.LOADING

    @property
    def ready(self) -> bool:
        return self._graphs is not None

    @property
    def error(self) -> Optional[BaseException]:
        return self._error

    def snapshot(self) -> Optional[GraphSet]:
        return self._graphs

    def publish(self, graphs: Sequence[ChainGraph]) -> GraphSet:
        graph_set = tuple(graphs)
        if not graph_set:
            raise ChainLoadError("No chains to publish")
        with self._publish_lock:
            if self._graphs is not None:
                raise RuntimeError("Chains have already been published")
            if self._error is not None:
                raise RuntimeError("Chain loading already failed")
            self._graphs = graph_set
        for graph in graph_set:
            CORPUS_NODES.labels(source=graph.source).set(len(graph))
        logger.info(f"Published {len(graph_set)} chains; babbler is ready")
        return graph_set

    def fail(self, error: BaseException) -> None:
        with self._publish_lock:
            if self._graphs is None:
                self._error = error


def load_all(paths: Sequence[str]) -> GraphSet:
    """Load every corpus file, failing on the first bad one."""
    if not paths:
        raise ChainLoadError("No chain files configured")
    logger.info("[*] Loading files")
    with trace_span("babbler.load_chains", attributes={"files": len(paths)}):
        return tuple(load_chain(path) for path in paths)


async def load_in_background(
    store: GraphStore,
    paths: Sequence[str],
    on_failure: Optional[Callable[[BaseException], None]] = None,
) -> None:
    """Load ``paths`` off the event loop and publish them into ``store``.

    A broken corpus is fatal: the store is marked failed and ``on_failure``
    is called so the process can stop instead of serving.
    """
    try:
        graphs = await asyncio.to_thread(load_all, list(paths))
        store.publish(graphs)
    except Exception as e:
        logger.critical(
            f"FATAL: could not load chains: {e}",
            exc_info=not isinstance(e, ChainLoadError),
        )
        store.fail(e)
        if on_failure is not None:
            on_failure(e)
