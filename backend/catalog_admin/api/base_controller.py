import json
import re
from typing import Any, Callable, Dict, Generic, List, Optional, Type

from fastapi import APIRouter, Depends, HTTPException, Request
from fastapi.responses import Response
from pydantic import BaseModel

from catalog_admin.api.negotiator import generate_response, pop_flash
from catalog_admin.config import settings
from catalog_admin.exceptions import InvalidQueryError, UnknownRequestSchema
from catalog_admin.repositories.base_repo import INT_MAX, INT_MIN, ModelT, Page
from catalog_admin.requests.base_request import FormRequest
from catalog_admin.services.base_service import ResourceService

_FILTER_PARAM = re.compile(r"^filters\[(\w+)\]$")
_FORM_TYPES = ("application/x-www-form-urlencoded", "multipart/form-data")


async def read_payload(request: Request) -> Any:
    """Request body as a plain mapping, from either JSON or an HTML form post."""
    content_type = request.headers.get("content-type", "")
    if content_type.startswith(_FORM_TYPES):
        form = await request.form()
        return dict(form)
    body = await request.body()
    if not body:
        return {}
    try:
        return json.loads(body)
    except ValueError:
        raise HTTPException(status_code=400, detail="Malformed JSON body.")


def parse_filters(request: Request) -> Dict[str, str]:
    filters = {}
    for key, value in request.query_params.items():
        match = _FILTER_PARAM.match(key)
        if match and value != "":
            filters[match.group(1)] = value
    return filters


def _int_param(request: Request, name: str, default: int) -> int:
    raw = request.query_params.get(name)
    if raw in (None, ""):
        return default
    try:
        value = int(raw)
    except ValueError:
        raise InvalidQueryError(f"The {name} parameter must be an integer.")
    if not INT_MIN <= value <= INT_MAX:
        raise InvalidQueryError(f"The {name} parameter is out of range.")
    return value


class BaseController(Generic[ModelT]):
    """
    Generic CRUD controller for one resource.

    A subclass binds the service dependency, the read schema and the two
    request classes; this class turns them into list/create/show/edit/
    update/delete routes on ``self.router``. Routes are named
    ``<name>.<action>`` so redirects can target them by view name.
    """

    def __init__(
        self,
        name: str,
        service_dependency: Callable[..., ResourceService[ModelT]],
        resource_schema: Type[BaseModel],
        store_request: Optional[Type[FormRequest]] = None,
        update_request: Optional[Type[FormRequest]] = None,
        tags: Optional[List[str]] = None,
    ):
        self.name = name
        self.service_dependency = service_dependency
        self.resource_schema = resource_schema
        self.store_request = self.resolve_request(store_request)
        self.update_request = self.resolve_request(update_request)
        self.router = APIRouter(prefix=f"/{name}", tags=tags or [name])
        self._register_routes()

    @staticmethod
    def resolve_request(request_class) -> FormRequest:
        if isinstance(request_class, type) and issubclass(request_class, FormRequest):
            return request_class()
        raise UnknownRequestSchema(f"Request class {request_class!r} does not exist.")

    # -- representations -------------------------------------------------

    def item(self, entity: ModelT) -> Dict[str, Any]:
        return {"data": self.resource_schema.model_validate(entity).model_dump(mode="json")}

    def collection(self, page: Page[ModelT], request: Request) -> Dict[str, Any]:
        def link(number: int) -> str:
            return str(request.url.include_query_params(page=number))

        return {
            "data": [
                self.resource_schema.model_validate(e).model_dump(mode="json") for e in page.items
            ],
            "links": {
                "first": link(1),
                "last": link(page.last_page),
                "prev": link(page.page - 1) if page.page > 1 else None,
                "next": link(page.page + 1) if page.page < page.last_page else None,
            },
            "meta": {
                "current_page": page.page,
                "from": page.from_index,
                "last_page": page.last_page,
                "path": str(request.url.replace(query="")),
                "per_page": page.per_page,
                "to": page.to_index,
                "total": page.total,
            },
        }

    # -- actions ---------------------------------------------------------

    def index(self, request: Request, service: ResourceService[ModelT]) -> Response:
        page = service.get_all(
            filters=parse_filters(request),
            search=request.query_params.get("search", ""),
            sort_by=request.query_params.get("sort_by", "created_at"),
            sort_order=request.query_params.get("sort_order", "desc"),
            per_page=_int_param(request, "per_page", settings.DEFAULT_PER_PAGE),
            page=_int_param(request, "page", 1),
        )
        return generate_response(
            request, self.collection(page, request), service.get_index_view(), pop_flash(request)
        )

    def store(self, request: Request, payload: Any, service: ResourceService[ModelT]) -> Response:
        data = self.store_request.validate(payload, service.db)
        entity = service.create(data)
        return generate_response(
            request,
            self.item(entity),
            service.get_index_view(),
            {"status": f"{service.model_name} created."},
            status_code=201,
        )

    def show(self, id: int, request: Request, service: ResourceService[ModelT]) -> Response:
        entity = service.find(id)
        return generate_response(
            request,
            self.item(entity),
            service.get_show_view(),
            pop_flash(request),
            route_params={"id": id},
        )

    def edit(self, id: int, request: Request, service: ResourceService[ModelT]) -> Response:
        entity = service.find(id)
        return generate_response(
            request,
            self.item(entity),
            service.get_edit_view(),
            route_params={"id": id},
        )

    def update(self, id: int, request: Request, payload: Any, service: ResourceService[ModelT]) -> Response:
        data = self.update_request.validate(payload, service.db, ignore_id=id)
        entity = service.update(service.find(id), data)
        # 200 with the updated body; a 204 cannot carry one
        return generate_response(
            request,
            self.item(entity),
            service.get_show_view(),
            {"status": f"{service.model_name} updated."},
            route_params={"id": id},
        )

    def destroy(self, id: int, service: ResourceService[ModelT]) -> Response:
        service.delete(service.find(id))
        return Response(status_code=204)

    # -- routing ---------------------------------------------------------

    def _register_routes(self):
        get_service = self.service_dependency

        def index(request: Request, service=Depends(get_service)):
            return self.index(request, service)

        def store(request: Request, payload: Any = Depends(read_payload), service=Depends(get_service)):
            return self.store(request, payload, service)

        def show(id: int, request: Request, service=Depends(get_service)):
            return self.show(id, request, service)

        def edit(id: int, request: Request, service=Depends(get_service)):
            return self.edit(id, request, service)

        def update(
            id: int,
            request: Request,
            payload: Any = Depends(read_payload),
            service=Depends(get_service),
        ):
            return self.update(id, request, payload, service)

        def destroy(id: int, service=Depends(get_service)):
            return self.destroy(id, service)

        name = self.name
        self.router.add_api_route("", index, methods=["GET"], name=f"{name}.index", summary=f"List {name}")
        self.router.add_api_route(
            "", store, methods=["POST"], name=f"{name}.store", status_code=201, summary=f"Create {name}"
        )
        self.router.add_api_route("/{id}", show, methods=["GET"], name=f"{name}.show")
        self.router.add_api_route("/{id}/edit", edit, methods=["GET"], name=f"{name}.edit")
        self.router.add_api_route("/{id}", update, methods=["PUT", "PATCH"], name=f"{name}.update")
        self.router.add_api_route(
            "/{id}", destroy, methods=["DELETE"], name=f"{name}.destroy", status_code=204
        )
