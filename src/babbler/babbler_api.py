# babbler/babbler_api.py
# HTTP surface of the babbler: streams generated pages to crawlers.

import asyncio
import logging
import os
import signal
import sys
from contextlib import asynccontextmanager
from typing import Callable, Iterable, Iterator, Optional

from fastapi import FastAPI, Request
from fastapi.responses import HTMLResponse, StreamingResponse

from src.shared.config import CONFIG
from src.shared.config_schema import AppConfig
from src.shared.metrics import BABBLE_BYTES, BABBLE_REQUESTS, CLIENT_DISCONNECTS
from src.shared.middleware import create_app
from src.shared.observability import (
    HealthCheckResult,
    ObservabilitySettings,
    register_health_check,
)

from .graph_store import GraphStore, StoreState, load_in_background
from .links import compose_link_set
from .pages import (
    NOT_READY_BODY,
    chunked,
    generated_page,
    landing_page,
    status_page,
)
from .stats import StatsCollector

logger = logging.getLogger(__name__)


class ChunkedHTMLResponse(StreamingResponse):
    """HTML streamed with chunked transfer encoding.

    Each item of the body iterator goes out as one chunk; the server writes
    the zero-length closing chunk once the iterator is exhausted.
    """

    media_type = "text/html"

    def __init__(self, content: Iterable[bytes], status_code: int = 200) -> None:
        super().__init__(
            content,
            status_code=status_code,
            headers={"Transfer-Encoding": "chunked"},
            media_type=self.media_type,
        )


def _abort_process(error: BaseException) -> None:
    """Stop serving after a corpus failed to load."""
    logger.critical(f"Shutting down: corpus is unusable ({error})")
    os.kill(os.getpid(), signal.SIGTERM)


def _is_status_path(path: str, status_prefix: str) -> bool:
    return path == status_prefix or path.startswith(status_prefix + "/")


def create_babbler_app(
    config: Optional[AppConfig] = None,
    store: Optional[GraphStore] = None,
    stats: Optional[StatsCollector] = None,
    on_load_failure: Optional[Callable[[BaseException], None]] = _abort_process,
) -> FastAPI:
    config = config or CONFIG
    generation = config.generation
    store = store or GraphStore()
    stats = stats or StatsCollector()

    if config.app_env == "development" or config.debug:
        log_level = "DEBUG"
    else:
        log_level = config.log_level

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        task = None
        if store.state is StoreState.LOADING:
            task = asyncio.create_task(
                load_in_background(
                    store, generation.corpus_files, on_failure=on_load_failure
                )
            )
        app.state.load_task = task
        yield
        if task is not None and not task.done():
            task.cancel()

    app = create_app(
        title=config.service_name,
        lifespan=lifespan,
        security_settings=config.security,
        observability_settings=ObservabilitySettings(
            service_name=config.service_name, log_level=log_level
        ),
    )
    app.state.store = store
    app.state.stats = stats
    app.state.babbler_config = config

    @register_health_check(app, "corpus", critical=True)
    def _corpus_health() -> HealthCheckResult:
        graphs = store.snapshot()
        if graphs is not None:
            return HealthCheckResult.healthy(
                {"chains": len(graphs), "words": sum(len(g) for g in graphs)}
            )
        if store.state is StoreState.FAILED:
            return HealthCheckResult.unhealthy({"error": str(store.error)})
        return HealthCheckResult.degraded({"state": store.state.value})

    def _stream(fragments: Iterable[str], path: str) -> Iterator[bytes]:
        finished = False
        try:
            for chunk in chunked(fragments, generation.buffer_size):
                BABBLE_BYTES.inc(len(chunk))
                if generation.count_bytes_served:
                    stats.record_bytes(len(chunk))
                yield chunk
            finished = True
        finally:
            if not finished:
                CLIENT_DISCONNECTS.inc()
                logger.debug(f"Client went away while streaming {path}")

    def _not_ready() -> HTMLResponse:
        # Nothing has been written yet, so the retryable status reaches the wire.
        BABBLE_REQUESTS.labels(page="not_ready").inc()
        return HTMLResponse(
            NOT_READY_BODY,
            status_code=503,
            headers={"Retry-After": str(generation.retry_after_seconds)},
        )

    @app.get("/", response_class=HTMLResponse)
    async def landing(request: Request):
        graphs = store.snapshot()
        if graphs is None:
            return _not_ready()
        BABBLE_REQUESTS.labels(page="landing").inc()
        links = compose_link_set(graphs, request.url.path, generation.url_prefix)
        return HTMLResponse("".join(landing_page(links)))

    @app.get(generation.url_prefix + "{rest:path}", response_class=ChunkedHTMLResponse)
    async def babble(request: Request, rest: str):
        stats.record_request()
        graphs = store.snapshot()
        if graphs is None:
            return _not_ready()

        path = request.url.path
        if _is_status_path(path, generation.status_prefix):
            BABBLE_REQUESTS.labels(page="status").inc()
            fragments = status_page(stats.snapshot())
        else:
            BABBLE_REQUESTS.labels(page="babble").inc()
            fragments = generated_page(
                graphs,
                path,
                prefix=generation.url_prefix,
                word_count=generation.word_count,
                paragraph_count=generation.paragraph_count,
                link_count=generation.link_count,
                poison=generation.poison,
            )
        logger.debug(f"Babbling at {path}")
        return ChunkedHTMLResponse(_stream(fragments, path))

    return app


app = create_babbler_app()


def main() -> None:
    import uvicorn

    logger.info("--- Babbler Starting ---")
    logger.info(f"Corpus files: {', '.join(CONFIG.generation.corpus_files)}")
    logger.info(f"URL prefix: {CONFIG.generation.url_prefix}")
    logger.info(
        f"Page size: {CONFIG.generation.paragraph_count} paragraphs x "
        f"{CONFIG.generation.word_count} words"
    )
    logger.info(f"Serving on {CONFIG.server.host}:{CONFIG.server.port}")
    uvicorn.run(
        app,
        host=CONFIG.server.host,
        port=CONFIG.server.port,
        log_level=str(CONFIG.log_level).lower(),
    )
    if app.state.store.state is StoreState.FAILED:
        sys.exit(1)


if __name__ == "__main__":
    main()
