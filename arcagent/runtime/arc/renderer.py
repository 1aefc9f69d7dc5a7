"""
Arc Renderer - Client for the diagram rendering service

WHAT: Posts a relation model to the rendering service and returns the image
WHERE: arcagent/runtime/arc/renderer.py - outbound collaborator boundary
WHO: The getRenderedArc operation
TIME: One blocking HTTP round trip per render; bounded by the client timeout

The rendering service accepts the model in its wire shape, with the score
table given as a locale code rather than inline, and answers with SVG text or
PNG bytes depending on ``returnSVG``.

Boundary Notes:
- Every transport or HTTP failure surfaces as RenderError; callers decide
  whether it is fatal (operations never treat it as fatal)
- The renderer never mutates the model
"""

from __future__ import annotations

import logging
from typing import Any, Dict

import httpx

from .models import RelationModel, RenderedArtifact

logger = logging.getLogger(__name__)

DEFAULT_RENDER_URL = "http://localhost:3000/arc"


class RenderError(RuntimeError):
    """Raised when the rendering service is unreachable or rejects a request."""


class ArcRenderer:
    """Thin httpx wrapper around the rendering service endpoint."""

    def __init__(
        self,
        url: str = DEFAULT_RENDER_URL,
        *,
        timeout: float = 30.0,
        client: httpx.Client | None = None,
    ) -> None:
        self.url = url
        self.timeout = timeout
        self._owns_client = client is None
        self._client = client if client is not None else httpx.Client(timeout=timeout)

    @staticmethod
    def build_payload(model: RelationModel) -> Dict[str, Any]:
        snapshot = model.snapshot().to_payload()
        return {
            "title": snapshot["title"],
            "subtitle": snapshot["subtitle"],
            "returnSVG": snapshot["returnSVG"],
            "scoreTable": model.score_locale,
            "reasonTable": snapshot["reasonTable"],
            "relations": snapshot["relations"],
        }

    def render(self, model: RelationModel) -> RenderedArtifact:
        payload = self.build_payload(model)
        try:
            response = self._client.post(self.url, json=payload, timeout=self.timeout)
        except httpx.HTTPError as exc:
            logger.warning(f"Rendering service unreachable at {self.url}: {exc}")
            raise RenderError(f"Rendering error: {exc}") from exc

        if response.is_error:
            reason = response.reason_phrase or f"HTTP {response.status_code}"
            logger.warning(f"Rendering service returned {response.status_code} {reason}")
            raise RenderError(f"Failed to render diagram: {reason}")

        if model.return_svg:
            artifact = RenderedArtifact.from_bytes(response.text.encode("utf-8"), svg=True)
        else:
            artifact = RenderedArtifact.from_bytes(response.content, svg=False)
        logger.info(f"Rendered diagram as {artifact.encoding} ({len(response.content)} bytes)")
        return artifact

    def close(self) -> None:
        """Release the connection pool when the renderer created its own client."""

        if self._owns_client:
            self._client.close()


__all__ = [
    "ArcRenderer",
    "DEFAULT_RENDER_URL",
    "RenderError",
]
