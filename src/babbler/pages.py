# babbler/pages.py
# HTML for generated pages, the status page and the landing page.
"""Page bodies are produced as iterators of text fragments.

Nothing is rendered up front: the handler pulls fragments, packs them into
chunks and writes each chunk as soon as it is full, so a crawler starts
receiving bytes while the rest of the page is still being walked.
"""

from __future__ import annotations

import html
from typing import Iterable, Iterator, Sequence
from urllib.parse import quote

from .chain_loader import ChainGraph
from .links import Link, pick_graph, random_word
from .rng import Xorshift32, derive_seed
from .stats import StatsSnapshot, format_count, format_duration
from .walker import walk

STYLE = (
    "<style>"
    "body {color: white; background-color: black}"
    "div {max-width: 40em; margin: auto;}"
    "h3, h1 {text-align: center}"
    "a {color: cyan;}"
    "</style>"
)
NOT_READY_BODY = "<html><body>Still loading...</body></html>"
LINK_PATH_WORDS = 5
LINK_TEXT_LENGTH = 10


def extract_counter(path: str) -> int:
    """Return the first digit in ``path``, or 0."""
    for c in path:
        if "0" <= c <= "9":
            return int(c)
    return 0


def chunked(fragments: Iterable[str], buffer_size: int) -> Iterator[bytes]:
    """Pack text fragments into chunks of at least ``buffer_size`` bytes.

    The final chunk may be shorter. Nothing empty is ever yielded, so the
    only zero-length chunk on the wire is the closing one.
    """
    buffer = bytearray()
    for fragment in fragments:
        buffer += fragment.encode("utf-8")
        if len(buffer) >= buffer_size:
            yield bytes(buffer)
            buffer.clear()
    if buffer:
        yield bytes(buffer)


def _walked(graph: ChainGraph, steps: int, rng: Xorshift32) -> Iterator[str]:
    for step in walk(graph, steps, rng):
        if step.text:
            yield html.escape(step.text, quote=False)


def generated_page(
    graphs: Sequence[ChainGraph],
    path: str,
    *,
    prefix: str,
    word_count: int,
    paragraph_count: int,
    link_count: int,
    poison: str = "",
) -> Iterator[str]:
    """The tarpit page for ``path``. Identical paths give identical pages."""
    counter = extract_counter(path)
    rng = Xorshift32(derive_seed(path))
    graph = pick_graph(graphs, rng)

    topic = html.escape(f"{random_word(graph, rng)} {random_word(graph, rng)}".upper())

    yield (
        "<html><head><meta http-equiv='Content-Type' "
        "content='text/html; charset=UTF-8' />"
    )
    yield STYLE
    yield f"<title>{topic}</title></head><body><h1>{topic}</h1>"
    yield "<h3>Garbage for the garbage king!</h3><div>"

    for _ in range(paragraph_count):
        yield "<p>"
        yield from _walked(graph, word_count, rng)
        yield ".</p>"

    if rng.next() % 4 == 0:
        yield f"<p>{poison}</p>"

    for _ in range(link_count):
        words = [
            quote(random_word(graph, rng), safe="") for _ in range(LINK_PATH_WORDS)
        ]
        href = f"{prefix}{'/'.join(words)}/{counter + 1}/"
        yield f'<a href="{href}">'
        yield from _walked(graph, LINK_TEXT_LENGTH, rng)
        yield "</a><br/>"

    yield "</div></body></html>"


def status_page(stats: StatsSnapshot) -> Iterator[str]:
    """Traffic statistics since the process started."""
    uptime = int(stats.uptime_seconds)

    yield "<html><head>"
    yield STYLE
    yield "<title>Babbler status</title></head><body>"
    yield "<h1>Babbler stats:</h1>"
    yield f"<div><p>In the past <b>{format_duration(uptime)}</b>"
    yield f"I've spent <b>{format_duration(int(stats.cpu_seconds))}</b>"
    yield f"dealing with: <b>{format_count(stats.requests_served)}</b>"
    yield f"requests and serving <b>{format_count(stats.bytes_served, si=True)}B</b>"
    yield " of garbage.<br><br>"
    if stats.uptime_seconds > 0:
        requests_rate = format_count(stats.per_minute(stats.requests_served), si=True)
        bytes_rate = format_count(stats.per_minute(stats.bytes_served), si=True)
        yield f"... at an average rate of <b>{requests_rate}</b>"
        yield f"requests per minute and <b>{bytes_rate}B</b> per minute."
    yield "<br><br></div></body></html>"


def landing_page(links: Sequence[Link]) -> Iterator[str]:
    """Entry page pointing crawlers into the babble tree."""
    yield "<html><head>"
    yield STYLE
    yield "<title>Babbler</title></head><body><h1>Babbler</h1><div><ul>"
    for link in links:
        href = "/".join(quote(part, safe="") for part in link.href.split("/"))
        title = html.escape(link.title.strip(), quote=False)
        yield f'<li><a href="{href}">{title}</a></li>'
    yield "</ul></div></body></html>"
