from . import (
    chain_loader,
    graph_store,
    links,
    pages,
    rng,
    stats,
    walker,
)

__all__ = [
    'chain_loader',
    'graph_store',
    'links',
    'pages',
    'rng',
    'stats',
    'walker',
]
