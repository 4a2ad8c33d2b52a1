from __future__ import annotations

import logging
from collections.abc import Iterator
from contextlib import asynccontextmanager, contextmanager

from fastapi import Depends, FastAPI, HTTPException, Request
from fastapi.responses import JSONResponse
from sqlalchemy.orm import Session
from starlette.middleware.sessions import SessionMiddleware

from .analytics.aggregator import compute_analytics
from .analytics.store import get_events
from .auth.dependencies import require_admin, require_user
from .auth.models import LoginRequest, SignupRequest
from .auth.users import authenticate, register
from .config import DEFAULT_SETTINGS
from .db.database import get_db, init_db
from .errors import TableScoutError, UpstreamError, is_client_error
from .interactions.models import InteractionRequest
from .interactions.service import record_interaction
from .lists import service as lists
from .lists.models import AddRestaurant, ListCreate, ListUpdate
from .places.cache import get_cache_stats
from .places.models import SearchRequest, SearchResponse
from .places.service import get_restaurant, search_places
from .preferences.models import PreferencesIn
from .preferences.service import get_preferences, preferences_to_dict, save_preferences
from .preferences.summary import get_summary, refresh_summary
from .recommendations.models import RecommendationRequest, RecommendationResponse
from .recommendations.service import generate_recommendations

logging.basicConfig(
    level=DEFAULT_SETTINGS.log_level,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logging.getLogger("sqlalchemy.engine").setLevel(logging.WARNING)

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    init_db()
    yield


app = FastAPI(title="TableScout Restaurant Discovery API", version="1.0.0", lifespan=lifespan)
app.add_middleware(SessionMiddleware, secret_key=DEFAULT_SETTINGS.session_secret)


@app.exception_handler(TableScoutError)
async def handle_domain_error(request: Request, exc: TableScoutError) -> JSONResponse:
    return JSONResponse(status_code=exc.status_code, content={"detail": exc.message})


@contextmanager
def failure_message(message: str) -> Iterator[None]:
    """Let client errors through; log anything else and answer with a generic 500."""
    try:
        yield
    except HTTPException:
        raise
    except Exception as exc:
        if is_client_error(exc):
            raise
        logger.exception(message)
        raise UpstreamError(message) from None


# ── Public endpoints ─────────────────────────────────────────────────────


@app.get("/health")
def health() -> dict[str, str]:
    return {"status": "ok"}


# ── Auth endpoints ───────────────────────────────────────────────────────


@app.post("/auth/signup")
def signup(body: SignupRequest, request: Request, db: Session = Depends(get_db)) -> dict:
    user = register(db, body.username, body.password)
    request.session["user"] = user
    return {"status": "ok", "user": user}


@app.post("/auth/login")
def login(body: LoginRequest, request: Request, db: Session = Depends(get_db)) -> dict:
    user = authenticate(db, body.username, body.password)
    if not user:
        raise HTTPException(status_code=401, detail="Invalid credentials")
    request.session["user"] = user
    return {"status": "ok", "user": user}


@app.post("/auth/logout")
def logout(request: Request) -> dict:
    request.session.clear()
    return {"status": "logged_out"}


@app.get("/auth/me")
def auth_me(user: dict = Depends(require_user)) -> dict:
    return user


# ── Preferences ──────────────────────────────────────────────────────────


@app.get("/user/preferences")
def read_preferences(user: dict = Depends(require_user), db: Session = Depends(get_db)) -> dict:
    row = get_preferences(db, user["id"])
    if row is None:
        raise HTTPException(status_code=404, detail="User preferences not found")
    return {"preferences": preferences_to_dict(row)}


@app.put("/user/preferences")
def write_preferences(
    body: PreferencesIn,
    user: dict = Depends(require_user),
    db: Session = Depends(get_db),
) -> dict:
    with failure_message("Failed to save preferences"):
        row = save_preferences(db, user["id"], body)
        return {"preferences": preferences_to_dict(row)}


@app.get("/preferences/summary")
def read_summary(user: dict = Depends(require_user), db: Session = Depends(get_db)) -> dict:
    with failure_message("Failed to fetch summary"):
        row = get_summary(db, user["id"])
    if row is None:
        return {"summary": None}
    return {
        "summary": {
            "user_id": row.user_id,
            "summary": row.summary,
            "updated_at": row.updated_at,
        }
    }


@app.post("/preferences/summary")
def recompute_summary(user: dict = Depends(require_user), db: Session = Depends(get_db)) -> dict:
    with failure_message("Internal server error"):
        return refresh_summary(db, user["id"])


# ── Discovery ────────────────────────────────────────────────────────────


@app.post("/recommendations", response_model=RecommendationResponse)
def recommendations(
    body: RecommendationRequest,
    user: dict = Depends(require_user),
    db: Session = Depends(get_db),
) -> RecommendationResponse:
    with failure_message("Failed to generate recommendations"):
        return generate_recommendations(db, user["id"], body)


@app.post("/search", response_model=SearchResponse)
def search(
    body: SearchRequest,
    user: dict = Depends(require_user),
    db: Session = Depends(get_db),
) -> SearchResponse:
    with failure_message("Failed to search restaurants"):
        return search_places(db, body)


@app.get("/places/details/{place_id}")
def place_details(
    place_id: str,
    user: dict = Depends(require_user),
    db: Session = Depends(get_db),
) -> dict:
    with failure_message("Failed to fetch place details"):
        restaurant = get_restaurant(db, place_id)
    return {"restaurant": restaurant.model_dump(mode="json")}


@app.post("/interactions")
def interactions(
    body: InteractionRequest,
    user: dict = Depends(require_user),
    db: Session = Depends(get_db),
) -> dict:
    with failure_message("Failed to process interaction"):
        record_interaction(db, user["id"], body)
    return {"success": True}


# ── Lists ────────────────────────────────────────────────────────────────


@app.get("/lists")
def get_lists(user: dict = Depends(require_user), db: Session = Depends(get_db)) -> dict:
    with failure_message("Failed to fetch lists"):
        rows = lists.get_user_lists(db, user["id"])
    return {"lists": [lists.list_to_dict(r) for r in rows]}


@app.post("/lists")
def create_list(
    body: ListCreate,
    user: dict = Depends(require_user),
    db: Session = Depends(get_db),
) -> dict:
    with failure_message("Failed to create list"):
        row = lists.create_list(db, user["id"], body.name, body.description)
    return {"list": lists.list_to_dict(row)}


@app.get("/lists/{list_id}")
def get_list(list_id: str, user: dict = Depends(require_user), db: Session = Depends(get_db)) -> dict:
    with failure_message("Failed to fetch list"):
        row, restaurants = lists.list_restaurants(db, user["id"], list_id)
    return {"list": lists.list_to_dict(row), "restaurants": restaurants}


@app.patch("/lists/{list_id}")
def update_list(
    list_id: str,
    body: ListUpdate,
    user: dict = Depends(require_user),
    db: Session = Depends(get_db),
) -> dict:
    with failure_message("Failed to update list"):
        row = lists.update_list(db, user["id"], list_id, body.name, body.description)
    return {"list": lists.list_to_dict(row)}


@app.delete("/lists/{list_id}")
def delete_list(list_id: str, user: dict = Depends(require_user), db: Session = Depends(get_db)) -> dict:
    with failure_message("Failed to delete list"):
        lists.delete_list(db, user["id"], list_id)
    return {"success": True}


@app.post("/lists/{list_id}/restaurants")
def add_list_restaurant(
    list_id: str,
    body: AddRestaurant,
    user: dict = Depends(require_user),
    db: Session = Depends(get_db),
) -> dict:
    with failure_message("Failed to add restaurant"):
        entry, created = lists.add_to_list(db, user["id"], list_id, body.place_id)
    if not created:
        return {"message": "Restaurant already in list"}
    return {
        "success": True,
        "data": {"id": entry.id, "list_id": entry.list_id, "place_id": entry.place_id, "added_at": entry.added_at},
    }


@app.delete("/lists/{list_id}/restaurants")
def remove_list_restaurant(
    list_id: str,
    placeId: str | None = None,
    user: dict = Depends(require_user),
    db: Session = Depends(get_db),
) -> dict:
    with failure_message("Failed to remove restaurant"):
        lists.remove_from_list(db, user["id"], list_id, placeId)
    return {"success": True}


# ── Admin endpoints ──────────────────────────────────────────────────────


@app.get("/analytics")
def analytics(user: dict = Depends(require_admin)) -> dict:
    return compute_analytics(get_events())


@app.get("/cache/stats")
def cache_stats(user: dict = Depends(require_admin)) -> dict:
    return get_cache_stats()
