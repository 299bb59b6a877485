"""FastAPI server exposing restaurant discovery, addresses and login."""

import logging
from contextlib import asynccontextmanager
from urllib.parse import urlencode

import httpx
import uvicorn
from fastapi import Depends, FastAPI, Query, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, RedirectResponse
from starlette.middleware.sessions import SessionMiddleware

from fooddash.config import Config, get_config, setup_logging
from fooddash.database import AddressRepository, Database, MenuRepository, get_database
from fooddash.errors import AuthError, FooddashError, ValidationError
from fooddash.guardrails import InputValidator, require_session_token, require_user_input
from fooddash.models.address import RegisterAddressRequest, UserContext
from fooddash.models.restaurant import AddressSuggestion
from fooddash.models.result import Result
from fooddash.services.address_service import AddressService
from fooddash.services.auth import AuthProvider, HostedAuthProvider, safe_next_path
from fooddash.services.cache import ResponseCache, get_response_cache
from fooddash.services.discovery import DiscoveryService
from fooddash.services.menu_aggregator import MenuAggregator
from fooddash.services.places_gateway import PlacesGateway
from fooddash.services.storage import StorageResolver

logger = logging.getLogger(__name__)

AUTH_ERROR_PATH = "/auth/auth-code-error"
OAUTH_PROVIDER = "google"


class ConfiguredSessionMiddleware(SessionMiddleware):
    """Signed session cookie whose secret is read when the app starts serving.

    Starlette builds the middleware stack on the first request, so importing
    this module does not require any settings.
    """

    def __init__(self, app) -> None:
        config = get_config()
        super().__init__(
            app,
            secret_key=config.session_secret,
            https_only=config.environment == "production",
        )


@asynccontextmanager
async def lifespan(_app: FastAPI):
    """Application lifespan manager."""
    config = get_config()
    logger.info(f"Starting Fooddash API on {config.server_host}:{config.server_port}")

    get_database().init_db()

    # One connection pool shared by every outbound call
    _app.state.http_client = httpx.AsyncClient(timeout=10.0)
    logger.info("✓ HTTP client initialized")

    yield

    await _app.state.http_client.aclose()
    logger.info("Shutting down Fooddash API")


app = FastAPI(
    title="Fooddash API",
    description="Restaurant discovery and delivery address API",
    version="0.1.0",
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)
app.add_middleware(ConfiguredSessionMiddleware)


# ========== ERROR HANDLING ==========


@app.exception_handler(FooddashError)
async def fooddash_error_handler(_request: Request, exc: FooddashError) -> JSONResponse:
    # Server-side failures never leak internal details
    message = exc.public_message if exc.status_code >= 500 else exc.message
    return JSONResponse(status_code=exc.status_code, content={"error": message})


@app.exception_handler(RequestValidationError)
async def request_validation_handler(
    _request: Request, exc: RequestValidationError
) -> JSONResponse:
    logger.debug(f"Rejected request body: {exc.errors()}")
    return JSONResponse(status_code=400, content={"error": "Invalid request"})


@app.exception_handler(Exception)
async def unexpected_error_handler(_request: Request, exc: Exception) -> JSONResponse:
    logger.exception(f"Unhandled error: {exc}")
    return JSONResponse(status_code=500, content={"error": "Internal server error"})


# ========== DEPENDENCIES ==========


def get_settings() -> Config:
    return get_config()


def get_http_client(request: Request) -> httpx.AsyncClient | None:
    return getattr(request.app.state, "http_client", None)


def get_cache() -> ResponseCache:
    return get_response_cache()


def get_db() -> Database:
    return get_database()


def get_gateway(
    config: Config = Depends(get_settings),
    client: httpx.AsyncClient | None = Depends(get_http_client),
    cache: ResponseCache = Depends(get_cache),
) -> PlacesGateway:
    return PlacesGateway(config=config, client=client, cache=cache)


def get_discovery(
    gateway: PlacesGateway = Depends(get_gateway),
    db: Database = Depends(get_db),
    config: Config = Depends(get_settings),
) -> DiscoveryService:
    menus = MenuAggregator(MenuRepository(db), StorageResolver(config))
    return DiscoveryService(gateway, menus, config)


def get_address_service(
    gateway: PlacesGateway = Depends(get_gateway),
    db: Database = Depends(get_db),
    config: Config = Depends(get_settings),
) -> AddressService:
    return AddressService(AddressRepository(db), gateway, config)


def get_auth_provider(
    config: Config = Depends(get_settings),
    client: httpx.AsyncClient | None = Depends(get_http_client),
) -> AuthProvider | None:
    if not config.has_auth_config():
        return None
    return HostedAuthProvider(config, client)


async def require_user(
    request: Request,
    provider: AuthProvider | None = Depends(get_auth_provider),
) -> UserContext:
    """Dependency resolving the signed-in user from the session cookie.

    Raises:
        AuthError: If there is no session or the provider rejects its token
    """
    access_token = request.session.get("access_token")
    if not access_token or provider is None:
        raise AuthError("User not found")

    user = await provider.get_current_user(access_token)
    if user is None:
        request.session.clear()
        raise AuthError("User not found")
    return user


def _envelope(result: Result) -> dict:
    if result.ok:
        return {"data": jsonable_encoder(result.data, by_alias=True)}
    return {"error": result.error}


def _result_response(result: Result) -> JSONResponse:
    return JSONResponse(status_code=200 if result.ok else 500, content=_envelope(result))


# ========== ROUTES ==========


@app.get("/health")
async def health_check():
    """Health check endpoint for monitoring."""
    return {"status": "healthy", "service": "fooddash-api"}


@app.get("/auth/login")
async def login(
    request: Request,
    next_path: str | None = Query(None, alias="next"),
    provider: AuthProvider | None = Depends(get_auth_provider),
    config: Config = Depends(get_settings),
):
    """Start the OAuth login and redirect to the provider."""
    if provider is None:
        raise AuthError("Login is not configured")

    redirect_to = config.auth_redirect_url
    if next_path:
        redirect_to = f"{redirect_to}?{urlencode({'next': safe_next_path(next_path)})}"

    sign_in = provider.sign_in_with_provider(OAUTH_PROVIDER, redirect_to)
    request.session["code_verifier"] = sign_in.code_verifier
    return RedirectResponse(sign_in.url, status_code=302)


@app.get("/auth/callback")
async def auth_callback(
    request: Request,
    code: str | None = None,
    next_path: str | None = Query(None, alias="next"),
    provider: AuthProvider | None = Depends(get_auth_provider),
):
    """Complete the login by exchanging the authorization code."""
    target = safe_next_path(next_path)
    code_verifier = request.session.pop("code_verifier", None)

    if not code or not code_verifier or provider is None:
        logger.warning("Auth callback without code or verifier")
        return RedirectResponse(AUTH_ERROR_PATH, status_code=302)

    try:
        session = await provider.exchange_code_for_session(code, code_verifier)
    except AuthError as e:
        logger.warning(f"Auth code exchange failed: {e.message}")
        return RedirectResponse(AUTH_ERROR_PATH, status_code=302)

    request.session["access_token"] = session.access_token
    logger.info(f"User {session.user.id} signed in")
    return RedirectResponse(target, status_code=302)


@app.post("/auth/logout")
async def logout(
    request: Request,
    provider: AuthProvider | None = Depends(get_auth_provider),
):
    """End the session locally and at the provider."""
    access_token = request.session.get("access_token")
    if access_token and provider is not None:
        await provider.sign_out(access_token)
    request.session.clear()
    return {"status": "logged_out"}


@app.get("/api/restaurant/autocomplete")
async def restaurant_autocomplete(
    input_text: str | None = Query(None, alias="input"),
    session_token: str | None = Query(None, alias="sessionToken"),
    discovery: DiscoveryService = Depends(get_discovery),
):
    """Restaurant name suggestions while the user types."""
    input_text = require_user_input(input_text)
    session_token = require_session_token(session_token)

    result = await discovery.restaurant_autocomplete(input_text, session_token)
    if not result.ok:
        return JSONResponse(status_code=500, content={"error": result.error})
    return jsonable_encoder(result.data, by_alias=True)


@app.get("/api/address/autocomplete")
async def address_autocomplete(
    input_text: str | None = Query(None, alias="input"),
    session_token: str | None = Query(None, alias="sessionToken"),
    lat: str | None = None,
    lng: str | None = None,
    discovery: DiscoveryService = Depends(get_discovery),
):
    """Address suggestions biased towards the given coordinate."""
    input_text = require_user_input(input_text)
    session_token = require_session_token(session_token)

    result = await discovery.address_autocomplete(
        input_text, session_token, InputValidator.parse_coordinate(lat, lng)
    )
    if not result.ok:
        return JSONResponse(status_code=500, content={"error": result.error})
    return jsonable_encoder(result.data, by_alias=True)


@app.get("/api/address")
async def list_addresses(
    user: UserContext = Depends(require_user),
    addresses: AddressService = Depends(get_address_service),
):
    """Saved addresses and the selected one."""
    return addresses.get_addresses(user).model_dump(by_alias=True)


@app.post("/api/address")
async def register_address(
    body: RegisterAddressRequest,
    user: UserContext = Depends(require_user),
    addresses: AddressService = Depends(get_address_service),
):
    """Store the chosen suggestion and select it."""
    suggestion = AddressSuggestion(
        place_id=body.place_id, place_name=body.place_name, address_text=body.address_text
    )
    address = await addresses.register_address(user, suggestion, body.session_token)
    return JSONResponse(status_code=201, content=address.model_dump())


@app.put("/api/address/{address_id}/select")
async def select_address(
    address_id: int,
    user: UserContext = Depends(require_user),
    addresses: AddressService = Depends(get_address_service),
):
    """Switch the selected address."""
    return addresses.select_address(user, address_id).model_dump()


@app.delete("/api/address/{address_id}")
async def delete_address(
    address_id: int,
    user: UserContext = Depends(require_user),
    addresses: AddressService = Depends(get_address_service),
):
    """Remove a saved address."""
    addresses.delete_address(user, address_id)
    return {"status": "deleted"}


@app.get("/api/restaurants")
async def home_restaurants(
    user: UserContext = Depends(require_user),
    addresses: AddressService = Depends(get_address_service),
    discovery: DiscoveryService = Depends(get_discovery),
):
    """Nearby and specialty listings around the selected address.

    Each listing is returned as ``{data}`` or ``{error}`` independently.
    """
    center = addresses.resolve_search_center(user)
    listings = await discovery.home(center)
    return {
        "nearby": _envelope(listings.nearby),
        "specialty": _envelope(listings.specialty),
    }


@app.get("/api/restaurants/search")
async def search_restaurants(
    category: str | None = None,
    restaurant: str | None = None,
    user: UserContext = Depends(require_user),
    addresses: AddressService = Depends(get_address_service),
    discovery: DiscoveryService = Depends(get_discovery),
):
    """Search by category (primary type) or by free-text restaurant keyword."""
    if not category and not restaurant:
        raise ValidationError("category or restaurant is required")

    center = addresses.resolve_search_center(user)
    if category:
        result = await discovery.by_category(category, center)
    else:
        result = await discovery.by_keyword(require_user_input(restaurant), center)
    return _result_response(result)


@app.get("/api/restaurants/{place_id}")
async def restaurant_detail(
    place_id: str,
    session_token: str | None = Query(None, alias="sessionToken"),
    search_menu: str | None = Query(None, alias="searchMenu"),
    user: UserContext = Depends(require_user),
    discovery: DiscoveryService = Depends(get_discovery),
):
    """Restaurant details with its menus grouped into categories."""
    result = await discovery.restaurant_detail(place_id, session_token, search_menu)
    if not result.ok:
        return JSONResponse(status_code=500, content={"error": result.error})
    return result.data.model_dump(by_alias=True)


@app.get("/api/cache/stats")
async def cache_stats(cache: ResponseCache = Depends(get_cache)):
    """Hit/miss counters of the place response cache."""
    return cache.stats()


def run_server():
    """Run the FastAPI server using uvicorn.

    This is the main entry point for the server.
    """
    setup_logging()

    config = get_config()

    uvicorn.run(
        "fooddash.server:app",
        host=config.server_host,
        port=config.server_port,
        log_level=config.log_level.lower(),
        reload=config.environment == "development",
    )


if __name__ == "__main__":
    run_server()
