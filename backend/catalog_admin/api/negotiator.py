"""
Response negotiation for resource controllers.

The ``X-Return-Type`` request header picks how a controller result goes back
to the caller: plain JSON (the default), a server-rendered Jinja2 template,
a redirect carrying flash data, or an Inertia page object for a client-side
rendered frontend. Controllers build one payload and hand it here.
"""
import enum
from typing import Any, Callable, Dict, Mapping, Optional

from fastapi import Request
from fastapi.responses import JSONResponse, RedirectResponse, Response
from fastapi.templating import Jinja2Templates

from catalog_admin.config import settings

RETURN_TYPE_HEADER = "X-Return-Type"
FLASH_KEY = "_flash"

templates = Jinja2Templates(directory=settings.TEMPLATES_DIR)


class ReturnType(enum.Enum):
    JSON = "json"
    VIEW = "view"
    REDIRECT = "redirect"
    INERTIA = "inertia"

    @classmethod
    def from_request(cls, request: Request) -> "ReturnType":
        raw = request.headers.get(RETURN_TYPE_HEADER, cls.JSON.value).strip().lower()
        try:
            return cls(raw)
        except ValueError:
            return cls.JSON


def template_name(view: str) -> str:
    """products.index -> products/index.html"""
    return view.replace(".", "/") + ".html"


def pop_flash(request: Request) -> Dict[str, Any]:
    if "session" not in request.scope:
        return {}
    return request.session.pop(FLASH_KEY, None) or {}


def render_json(request, view, payload, extra, status_code, route_params) -> Response:
    if status_code == 204:
        return Response(status_code=204)
    return JSONResponse(payload, status_code=status_code)


def render_view(request, view, payload, extra, status_code, route_params) -> Response:
    context = {**payload, **extra}
    return templates.TemplateResponse(request, template_name(view), context, status_code=status_code)


def render_redirect(request, view, payload, extra, status_code, route_params) -> Response:
    url = request.url_for(view, **route_params)
    if request.method == "GET" and url.path == request.url.path:
        # redirecting a read to itself would loop; show the view instead
        return render_view(request, view, payload, extra, status_code, route_params)
    if extra:
        request.session[FLASH_KEY] = dict(extra)
    return RedirectResponse(str(url), status_code=303)


def render_inertia(request, view, payload, extra, status_code, route_params) -> Response:
    page = {
        "component": view,
        "props": {**payload, **extra},
        "url": request.url.path + (f"?{request.url.query}" if request.url.query else ""),
        "version": settings.INERTIA_VERSION,
    }
    if not request.headers.get("X-Inertia"):
        # first visit: the root template boots the frontend with the page object
        return templates.TemplateResponse(
            request, settings.INERTIA_ROOT_TEMPLATE, {"page": page}, status_code=status_code
        )
    client_version = request.headers.get("X-Inertia-Version", settings.INERTIA_VERSION)
    if request.method == "GET" and client_version != settings.INERTIA_VERSION:
        return Response(status_code=409, headers={"X-Inertia-Location": str(request.url)})
    return JSONResponse(
        page,
        status_code=status_code,
        headers={"X-Inertia": "true", "Vary": "X-Inertia"},
    )


RENDERERS: Dict[ReturnType, Callable[..., Response]] = {
    ReturnType.JSON: render_json,
    ReturnType.VIEW: render_view,
    ReturnType.REDIRECT: render_redirect,
    ReturnType.INERTIA: render_inertia,
}


def generate_response(
    request: Request,
    payload: Mapping[str, Any],
    view: str,
    extra: Optional[Mapping[str, Any]] = None,
    status_code: int = 200,
    route_params: Optional[Mapping[str, Any]] = None,
) -> Response:
    return_type = ReturnType.from_request(request)
    renderer = RENDERERS[return_type]
    return renderer(request, view, dict(payload), dict(extra or {}), status_code, dict(route_params or {}))
