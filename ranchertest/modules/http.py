"""Small HTTP servers for tests: fixed content or a shared directory."""
import logging
import threading
import time
from pathlib import Path
from typing import Tuple, Union

import uvicorn
from fastapi import FastAPI
from fastapi.responses import PlainTextResponse
from fastapi.staticfiles import StaticFiles

logger = logging.getLogger("http")


def content_app(content: str) -> FastAPI:
    """App answering every GET with the same content."""
    app = FastAPI(docs_url=None, redoc_url=None, openapi_url=None)

    @app.get("/{path:path}", response_class=PlainTextResponse)
    def serve_content(path: str) -> str:
        return content

    return app


def share_app(directory: Union[str, Path]) -> FastAPI:
    """App serving the files of a directory."""
    app = FastAPI(docs_url=None, redoc_url=None, openapi_url=None)
    app.mount("/", StaticFiles(directory=str(directory)), name="share")
    return app


def parse_listen_addr(listen_addr: str) -> Tuple[str, int]:
    """``":8000"`` -> ``("0.0.0.0", 8000)``."""
    host, _, port = listen_addr.rpartition(":")
    return host or "0.0.0.0", int(port)


class BackgroundServer:
    """uvicorn server running in a daemon thread."""

    def __init__(self, app: FastAPI, listen_addr: str):
        host, port = parse_listen_addr(listen_addr)
        self.server = uvicorn.Server(uvicorn.Config(app, host=host, port=port, log_level="warning"))
        self.thread = threading.Thread(target=self.server.run, daemon=True)

    def start(self, timeout: float = 10) -> 'BackgroundServer':
        self.thread.start()
        deadline = time.time() + timeout
        while not self.server.started:
            if not self.thread.is_alive() or time.time() > deadline:
                raise RuntimeError(
                    f"HTTP server failed to start on {self.server.config.host}:{self.server.config.port}"
                )
            time.sleep(0.05)
        logger.info(f"🌐 Serving on {self.server.config.host}:{self.server.config.port}")
        return self

    def stop(self, timeout: float = 10) -> None:
        self.server.should_exit = True
        self.thread.join(timeout)

    def __enter__(self) -> 'BackgroundServer':
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.stop()


def server(listen_addr: str, content: str) -> BackgroundServer:
    """Serve content on listen_addr until stop() is called."""
    return BackgroundServer(content_app(content), listen_addr).start()


def http_share(directory: Union[str, Path], port: int) -> BackgroundServer:
    """Share directory over HTTP on port until stop() is called."""
    return BackgroundServer(share_app(directory), f":{port}").start()
