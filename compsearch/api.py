from typing import Optional

from dotenv import load_dotenv
from fastapi import APIRouter, Depends, FastAPI, HTTPException, Query, Request, Response
from fastapi.exceptions import RequestValidationError
from fastapi.encoders import jsonable_encoder
from fastapi.responses import JSONResponse

from .config import Settings
from .exceptions import CompSearchError, ConfigurationError
from .models.property import CompSearchRequest, CompSearchResponse
from .services.property_service import PropertyService, build_property_service
from .utils.logging import configure_logging, get_logger

load_dotenv(override=False)

LOGGER = get_logger("api")

PHOTO_CACHE_CONTROL = "public, max-age=86400"

router = APIRouter(prefix="/api")


def get_service(request: Request) -> PropertyService:
    state = request.app.state
    if state.service is None:
        # Resolved on first use so a misconfigured MLS answers 503 instead of failing at import.
        state.service = build_property_service(state.settings)
    return state.service


@router.get("/health")
def health():
    return {"status": "ok"}


@router.post("/comps/search", response_model=CompSearchResponse)
def search_comps(req: CompSearchRequest, service: PropertyService = Depends(get_service)):
    results = service.search_comps(req.subject, req.mode, req.criteria)
    return CompSearchResponse(results=results, mode=req.mode)


@router.get("/properties/{property_id}")
def get_property(property_id: str, service: PropertyService = Depends(get_service)):
    prop = service.get_property(property_id)
    if prop is None:
        raise HTTPException(404, detail=f"Property {property_id} not found")
    return jsonable_encoder(prop)


@router.get("/properties/{property_id}/photos")
def get_property_photos(property_id: str, service: PropertyService = Depends(get_service)):
    return service.get_property_photos(property_id)


@router.get("/photos/{property_id}")
def get_photo(property_id: str, idx: int = Query(0, ge=0), service: PropertyService = Depends(get_service)):
    photo = service.fetch_photo(property_id, idx)
    if photo is None:
        raise HTTPException(404, detail="Photo not found")
    return Response(content=photo.data, media_type=photo.content_type, headers={"Cache-Control": PHOTO_CACHE_CONTROL})


@router.get("/listings")
def list_listings(limit: int = Query(50, ge=1, le=500), service: PropertyService = Depends(get_service)):
    items = service.list_active(limit)
    return {"items": jsonable_encoder(items), "total": len(items)}


@router.get("/geocode")
def geocode(
    address: str = Query(""),
    city: str = Query(...),
    state: str = Query(""),
    zip: str = Query(""),
    service: PropertyService = Depends(get_service),
):
    coords = service.geocode_address(address, city, state, zip)
    if coords is None:
        raise HTTPException(404, detail="Address could not be geocoded")
    return coords


def _invalid_request(request: Request, exc: RequestValidationError) -> JSONResponse:
    # Raw inputs are dropped: non-finite floats cannot be rendered as JSON.
    errors = [{key: value for key, value in error.items() if key not in ("input", "ctx")} for error in exc.errors()]
    return JSONResponse(status_code=422, content={"detail": jsonable_encoder(errors)})


def _configuration_error(request: Request, exc: ConfigurationError) -> JSONResponse:
    LOGGER.error("configuration_error path=%s error=%s", request.url.path, exc)
    return JSONResponse(status_code=503, content={"detail": str(exc)})


def _upstream_error(request: Request, exc: CompSearchError) -> JSONResponse:
    LOGGER.error("upstream_error path=%s error=%s", request.url.path, exc)
    return JSONResponse(status_code=502, content={"detail": str(exc)})


def create_app(service: Optional[PropertyService] = None, settings: Optional[Settings] = None) -> FastAPI:
    configure_logging()
    app = FastAPI(title="CompSearch")
    app.state.settings = settings or Settings.from_env()
    app.state.service = service
    app.add_exception_handler(RequestValidationError, _invalid_request)
    app.add_exception_handler(ConfigurationError, _configuration_error)
    app.add_exception_handler(CompSearchError, _upstream_error)
    app.include_router(router)
    return app


app = create_app()
