"""FastAPI front end for browsing a registry and its scan results"""

import logging
from typing import Callable, Optional

from fastapi import FastAPI, Request
from fastapi.responses import PlainTextResponse, Response

from regserver.errors import AggregationError, MissingRepository, MissingTag
from regserver.logging_config import StructuredLogContext
from regserver.pipeline import AggregationPipeline
from regserver.renderer import ResponseRenderer

logger = logging.getLogger(__name__)


def _request_context(func: str, request: Request) -> StructuredLogContext:
    return StructuredLogContext(func=func, URL=request.url, method=request.method)


def _require(repo: str, tag: Optional[str] = None, check_tag: bool = False):
    if not repo:
        raise MissingRepository()
    if check_tag and not tag:
        raise MissingTag()


def _handle(func: str, request: Request, action: Callable[[], Response]) -> Response:
    """Run a handler body, turning request errors into their status."""
    context = _request_context(func, request)
    logger.info(f"fetching {func} | {context}")

    try:
        return action()
    except AggregationError as e:
        logger.error(f"{func} failed | {context.bind(error=str(e) or type(e).__name__)}")
        return PlainTextResponse(e.message, status_code=e.status_code)
    except Exception as e:
        logger.error(f"Unexpected error in {func} | {context.bind(error=e)}", exc_info=True)
        return PlainTextResponse("", status_code=500)


def create_app(
    pipeline: AggregationPipeline, renderer: Optional[ResponseRenderer] = None
) -> FastAPI:
    """
    Build the application around a pipeline

    Args:
        pipeline: Aggregation pipeline bound to a registry and optional scanner
        renderer: View renderer (default templates if omitted)

    Returns:
        FastAPI application
    """
    renderer = renderer or ResponseRenderer()
    app = FastAPI(title="Registry UI")

    def _respond(view: str, result, request: Request) -> Response:
        rendered = renderer.render(view, result, request.headers)
        return Response(content=rendered.body, media_type=rendered.media_type)

    @app.get("/")
    @app.get("/repositories")
    def repositories(request: Request):
        """List all repositories in the registry"""

        def action():
            return _respond("repositories", pipeline.list_repositories(), request)

        return _handle("repositories", request, action)

    @app.get("/repo/{repo:path}/tags")
    @app.get("/repo/{repo:path}/tags/")
    def tags(repo: str, request: Request):
        """List tags of a repository with creation time and scan summary"""

        def action():
            _require(repo)
            return _respond("tags", pipeline.list_tags(repo), request)

        return _handle("tags", request, action)

    # Registered before the single tag route, whose tag segment would swallow "/vulns"
    @app.get("/repo/{repo:path}/tag/{tag:path}/vulns")
    @app.get("/repo/{repo:path}/tag/{tag:path}/vulns.json")
    def vulnerabilities(repo: str, tag: str, request: Request):
        """Full vulnerability report for one image"""

        def action():
            _require(repo, tag, check_tag=True)
            report = pipeline.get_vulnerabilities(repo, tag)
            if request.url.path.endswith(".json"):
                rendered = renderer.to_json(report)
                return Response(content=rendered.body, media_type=rendered.media_type)
            return _respond("vulns", report, request)

        return _handle("vulnerabilities", request, action)

    @app.get("/repo/{repo:path}/tag/{tag:path}")
    def tag(repo: str, tag: str, request: Request):
        """Show one tag"""

        def action():
            _require(repo, tag, check_tag=True)
            return PlainTextResponse(f"Repo: {repo} Tag: {tag} ")

        return _handle("tag", request, action)

    @app.get("/health")
    def health():
        """Health check endpoint"""
        return {"status": "ok", "scanning": pipeline.scanning_enabled}

    return app
