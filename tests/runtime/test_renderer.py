import json

import httpx
import pytest

from arcagent.runtime.arc.models import RelationModel
from arcagent.runtime.arc.renderer import ArcRenderer, RenderError

URL = "http://render.test/arc"


def _model(*, svg=False, locale="en"):
    model = RelationModel(title="Auth", subtitle="v1", return_svg=svg, score_locale=locale)
    model.add_item("Login")
    model.add_item("Database")
    model.add_reason("shared auth")
    model.set_pair_score("Login", "Database", "A")
    model.add_pair_reason("Login", "Database", "1")
    return model


def _renderer(handler):
    return ArcRenderer(URL, client=httpx.Client(transport=httpx.MockTransport(handler)))


def test_payload_carries_locale_instead_of_table():
    seen = {}

    def handler(request):
        seen["url"] = str(request.url)
        seen["body"] = json.loads(request.content)
        return httpx.Response(200, content=b"\x89PNG")

    _renderer(handler).render(_model(locale="id"))

    body = seen["body"]
    assert seen["url"] == URL
    assert body["scoreTable"] == "id"
    assert body["title"] == "Auth"
    assert body["returnSVG"] is False
    assert body["reasonTable"] == {"1": "shared auth"}
    assert body["relations"]["Database"]["Login"] == {"score": "A", "reasons": ["1"]}


def test_png_response_is_base64_tagged():
    artifact = _renderer(lambda request: httpx.Response(200, content=b"\x89PNG\r\n")).render(_model())
    assert artifact.encoding == "png-base64"
    assert artifact.decode() == b"\x89PNG\r\n"


def test_svg_response_is_base64_tagged():
    handler = lambda request: httpx.Response(200, text="<svg>ok</svg>")  # noqa: E731
    artifact = _renderer(handler).render(_model(svg=True))
    assert artifact.encoding == "svg-base64"
    assert artifact.decode() == b"<svg>ok</svg>"


def test_http_error_raises_render_error():
    renderer = _renderer(lambda request: httpx.Response(500))
    with pytest.raises(RenderError) as info:
        renderer.render(_model())
    assert "Internal Server Error" in str(info.value)


def test_unreachable_service_raises_render_error():
    def handler(request):
        raise httpx.ConnectError("connection refused", request=request)

    with pytest.raises(RenderError) as info:
        _renderer(handler).render(_model())
    assert str(info.value).startswith("Rendering error")


def test_render_does_not_mutate_model():
    model = _model()
    before = model.snapshot()
    _renderer(lambda request: httpx.Response(200, content=b"png")).render(model)
    assert model.snapshot() == before


def test_close_releases_owned_client_only():
    owned = ArcRenderer(URL)
    owned.close()
    assert owned._client.is_closed

    injected = httpx.Client(transport=httpx.MockTransport(lambda request: httpx.Response(200)))
    ArcRenderer(URL, client=injected).close()
    assert not injected.is_closed
    injected.close()
