"""
Tracker FastAPI server.

The server is the source of truth for rosters and the active flag. Browser
clients post small JSON bodies and get HTML fragments back to swap into
the page.

Endpoints:
- GET  /health                     - Liveness
- GET  /state                      - JSON snapshot of the current encounter
- GET  /encounters                 - Encounter list fragment
- POST /select-encounter           - Switch encounter, roster fragment
- GET  /characters                 - Roster fragment
- POST /select-character           - Set active combatant, roster fragment
- POST /next                       - Advance the turn, roster fragment
- POST /add-character              - Blank row in edit mode, roster fragment
- POST /add-enemy                  - Clone a catalog enemy, roster fragment
- POST /save-character             - Create or replace, row fragment
- POST /reorder                    - Manual-order move, JSON ack
- GET  /search-characters          - Combatants outside this encounter
- POST /add-character-to-encounter - Copy a combatant in, roster fragment
"""

import logging
import time
from contextlib import asynccontextmanager
from pathlib import Path
from typing import Literal, Mapping

from fastapi import Depends, FastAPI, HTTPException, Query, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import HTMLResponse

from ..errors import ValidationError
from ..state import (
    ENEMY_CATALOG,
    Combatant,
    EncounterStore,
    EnemyTemplate,
    demo_state,
)
from .schemas import (
    AddEnemyRequest,
    AddToEncounterRequest,
    EncounterState,
    ReorderAck,
    ReorderRequest,
    SaveCharacterRequest,
    SelectRequest,
    StateResponse,
)
from .templates import FragmentRenderer

logger = logging.getLogger(__name__)


class TrackerAPI:
    """
    Tracker API backend.

    Wraps an EncounterStore and the fragment renderer. Methods work on the
    current encounter; they return None where the HTTP layer answers 404.
    """

    def __init__(
        self,
        store: EncounterStore | None = None,
        seed_demo: bool = True,
        catalog: Mapping[int, EnemyTemplate] | None = None,
        templates_dir: Path | str | None = None,
    ):
        if store is None:
            store = EncounterStore(
                state=demo_state() if seed_demo else None,
                catalog=ENEMY_CATALOG if catalog is None else catalog,
            )
        self.store = store
        self.renderer = FragmentRenderer(templates_dir)

    @property
    def encounter_id(self) -> int | None:
        return self.store.state.current_encounter_id

    def _require_encounter(self) -> int:
        if self.encounter_id is None:
            raise ValidationError("No encounter selected")
        return self.encounter_id

    # -------------------------------------------------------------------------
    # Fragments
    # -------------------------------------------------------------------------

    def roster_html(self, order: str = "manual", editing: tuple[int, ...] = ()) -> str:
        encounter = self.store.current
        if encounter is None:
            return self.renderer.roster(None, [])
        if order == "turn":
            rows = self.store.turn_order(encounter.id)
        else:
            rows = list(encounter.roster)
        return self.renderer.roster(encounter, rows, editing)

    def encounters_html(self) -> str:
        return self.renderer.encounters(self.store.encounters, self.encounter_id)

    def get_state(self) -> StateResponse:
        encounter = self.store.current
        return StateResponse(
            encounter=(
                EncounterState.from_encounter(encounter, self.store.turn_order(encounter.id))
                if encounter else None
            ),
            encounters=[
                {"id": e.id, "name": e.name, "current": e.id == self.encounter_id}
                for e in self.store.encounters
            ],
        )

    # -------------------------------------------------------------------------
    # Operations
    # -------------------------------------------------------------------------

    def select_encounter(self, encounter_id: int) -> bool:
        if encounter_id not in self.store.state.encounters:
            return False
        self.store.switch_encounter(encounter_id)
        return True

    def select_character(self, combatant_id: int) -> None:
        if self.encounter_id is not None:
            self.store.set_active(self.encounter_id, combatant_id)

    def next_turn(self) -> None:
        if self.encounter_id is not None:
            self.store.advance_turn(self.encounter_id)

    def add_blank(self, owner_id: str = "") -> int:
        """Append a blank combatant; returns its id so it can open in edit mode."""
        encounter_id = self._require_encounter()
        roster = self.store.add_combatant(encounter_id, owner_id=owner_id)
        return roster[-1].id

    def add_enemy(self, template_id: int) -> bool:
        if template_id not in self.store.catalog:
            return False
        self.store.add_enemy_clone(self._require_encounter(), template_id)
        return True

    def save_character(self, request: SaveCharacterRequest) -> Combatant | None:
        """
        Create (id 0) or replace a combatant in the current encounter.

        Raises ValidationError for an empty name. Returns None when the id
        is not in the current roster.
        """
        if not request.name.strip():
            raise ValidationError("Name is required")
        encounter_id = self._require_encounter()

        if request.id == 0:
            roster = self.store.add_combatant(
                encounter_id, owner_id=request.owner_id, **request.stats()
            )
            saved = roster[-1]
            logger.info("Created combatant %s (%s)", saved.id, saved.name)
            return saved

        existing = self.store.current.find(request.id)
        if existing is None:
            return None
        self.store.save_combatant(
            encounter_id,
            existing.model_copy(update=request.stats()),
        )
        return self.store.current.find(request.id)

    def reorder(self, old_index: int, new_index: int) -> None:
        if self.encounter_id is not None:
            self.store.reorder(self.encounter_id, old_index, new_index)

    def search(self, query: str) -> list[Combatant]:
        return self.store.search(query)

    def add_to_encounter(self, combatant_id: int) -> None:
        self.store.add_existing(self._require_encounter(), combatant_id)


def create_app(
    seed_demo: bool = True,
    templates_dir: Path | str | None = None,
    store: EncounterStore | None = None,
) -> FastAPI:
    """
    Create the FastAPI application.

    Pass a store to serve existing state; otherwise a fresh one is built,
    demo-seeded unless seed_demo is False.
    """
    api = TrackerAPI(store=store, seed_demo=seed_demo, templates_dir=templates_dir)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        logger.info("Tracker API ready with %d encounter(s)", len(api.store.encounters))
        yield
        logger.info("Tracker API shutting down")

    app = FastAPI(
        title="Initiative Tracker API",
        description="Combat turn tracker with HTML fragment responses",
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

    @app.middleware("http")
    async def log_requests(request: Request, call_next):
        start = time.perf_counter()
        logger.info("Started %s %s", request.method, request.url.path)
        try:
            response = await call_next(request)
        except Exception:
            logger.exception("Unhandled error on %s %s", request.method, request.url.path)
            raise
        elapsed = (time.perf_counter() - start) * 1000
        logger.info("Completed %s in %.1fms (%d)", request.url.path, elapsed, response.status_code)
        return response

    app.state.api = api

    def get_api() -> TrackerAPI:
        return app.state.api

    # -------------------------------------------------------------------------
    # REST Endpoints
    # -------------------------------------------------------------------------

    @app.get("/health")
    async def health_check():
        """Health check endpoint."""
        return {"ok": True, "service": "initiative-tracker"}

    @app.get("/state", response_model=StateResponse)
    async def get_state(api: TrackerAPI = Depends(get_api)):
        """Current encounter snapshot, manual order plus turn order."""
        return api.get_state()

    @app.get("/encounters", response_class=HTMLResponse)
    async def list_encounters(api: TrackerAPI = Depends(get_api)):
        return api.encounters_html()

    @app.post("/select-encounter", response_class=HTMLResponse)
    async def select_encounter(request: SelectRequest, api: TrackerAPI = Depends(get_api)):
        if not api.select_encounter(request.id):
            raise HTTPException(status_code=404, detail=f"Encounter not found: {request.id}")
        return api.roster_html()

    @app.get("/characters", response_class=HTMLResponse)
    async def list_characters(
        order: Literal["manual", "turn"] = "manual",
        api: TrackerAPI = Depends(get_api),
    ):
        return api.roster_html(order)

    @app.post("/select-character", response_class=HTMLResponse)
    async def select_character(request: SelectRequest, api: TrackerAPI = Depends(get_api)):
        """Manual selection. The server decides the active flag."""
        api.select_character(request.id)
        return api.roster_html()

    @app.post("/next", response_class=HTMLResponse)
    async def next_turn(api: TrackerAPI = Depends(get_api)):
        api.next_turn()
        return api.roster_html()

    @app.post("/add-character", response_class=HTMLResponse)
    async def add_character(api: TrackerAPI = Depends(get_api)):
        try:
            new_id = api.add_blank()
        except ValidationError as e:
            raise HTTPException(status_code=400, detail=str(e))
        return api.roster_html(editing=(new_id,))

    @app.post("/add-enemy", response_class=HTMLResponse)
    async def add_enemy(request: AddEnemyRequest, api: TrackerAPI = Depends(get_api)):
        try:
            found = api.add_enemy(request.template_id)
        except ValidationError as e:
            raise HTTPException(status_code=400, detail=str(e))
        if not found:
            raise HTTPException(status_code=404, detail=f"Enemy template not found: {request.template_id}")
        return api.roster_html()

    @app.post("/save-character", response_class=HTMLResponse)
    async def save_character(request: SaveCharacterRequest, api: TrackerAPI = Depends(get_api)):
        """
        Save a whole combatant.

        Answers with the saved row; any error status tells the client to
        keep its edit open.
        """
        try:
            saved = api.save_character(request)
        except ValidationError as e:
            raise HTTPException(status_code=400, detail=str(e))
        if saved is None:
            raise HTTPException(status_code=404, detail=f"Character not found: {request.id}")
        return api.renderer.row(saved)

    @app.post("/reorder", response_model=ReorderAck)
    async def reorder(request: ReorderRequest, api: TrackerAPI = Depends(get_api)):
        """Apply a drag move. Out-of-range moves are ignored but acknowledged."""
        api.reorder(request.old_index, request.new_index)
        return ReorderAck()

    @app.get("/search-characters", response_class=HTMLResponse)
    async def search_characters(
        q: str = Query(default=""),
        api: TrackerAPI = Depends(get_api),
    ):
        return api.renderer.search_results(api.search(q))

    @app.post("/add-character-to-encounter", response_class=HTMLResponse)
    async def add_character_to_encounter(
        request: AddToEncounterRequest,
        api: TrackerAPI = Depends(get_api),
    ):
        try:
            api.add_to_encounter(request.character_id)
        except ValidationError as e:
            raise HTTPException(status_code=400, detail=str(e))
        return api.roster_html()

    return app
