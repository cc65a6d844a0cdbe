"""JSON or HTML output for aggregation results."""

import logging
from dataclasses import dataclass
from datetime import datetime
from pathlib import Path
from typing import Mapping, Optional, Union

from jinja2 import Environment, FileSystemLoader, TemplateError, select_autoescape
from pydantic import BaseModel
from pydantic_core import PydanticSerializationError

from regserver.errors import RenderError, SerializationError

logger = logging.getLogger(__name__)

JSON_MEDIA_TYPE = "application/json"
HTML_MEDIA_TYPE = "text/html; charset=utf-8"

TEMPLATE_DIR = Path(__file__).parent / "templates"


@dataclass
class RenderedResponse:
    """Fully rendered response body."""

    body: bytes
    media_type: str


def wants_json(headers: Mapping[str, str]) -> bool:
    """True when the client sent ``Accept-Encoding: application/json``.

    The ``Accept`` header is not consulted; existing clients rely on the
    encoding header alone.
    """
    normalized = {k.lower(): v for k, v in headers.items()}
    return normalized.get("accept-encoding", "").strip() == JSON_MEDIA_TYPE


def format_time(value: Optional[datetime]) -> str:
    if value is None:
        return "-"
    return value.strftime("%Y-%m-%d %H:%M:%S %Z").strip()


class ResponseRenderer:
    """Renders results through named Jinja2 views or as JSON."""

    def __init__(self, template_dir: Union[str, Path] = TEMPLATE_DIR):
        self.env = Environment(
            loader=FileSystemLoader(str(template_dir)),
            autoescape=select_autoescape(["html"]),
        )
        self.env.filters["format_time"] = format_time

    def to_json(self, result: BaseModel) -> RenderedResponse:
        """
        Encode a result as JSON using its wire field names

        Raises:
            SerializationError: If the result cannot be encoded
        """
        try:
            body = result.model_dump_json(by_alias=True).encode()
        except (PydanticSerializationError, TypeError, ValueError) as e:
            raise SerializationError(f"json marshal failed: {e}") from e
        return RenderedResponse(body=body, media_type=JSON_MEDIA_TYPE)

    def to_html(self, view: str, result: BaseModel) -> RenderedResponse:
        """
        Render a result through the template named after the view

        Raises:
            RenderError: If the template is missing or fails to execute
        """
        try:
            template = self.env.get_template(f"{view}.html")
            body = template.render(result=result)
        except (TemplateError, TypeError, ValueError) as e:
            raise RenderError(f"template rendering failed: {e}") from e
        return RenderedResponse(body=body.encode(), media_type=HTML_MEDIA_TYPE)

    def render(
        self, view: str, result: BaseModel, headers: Mapping[str, str]
    ) -> RenderedResponse:
        """Pick JSON or HTML from the request headers and render."""
        if wants_json(headers):
            return self.to_json(result)
        return self.to_html(view, result)
