"""
Orchestration of communication from the presentation layer to the coordination and persistence layers
(and the reverse direction).

Every public method returns a response model carrying an Outcome. Exceptions raised by the lower layers
are converted here; the only one that escapes is MasterUnreachableError while bootstrapping.
"""

import logging
from typing import Optional, TypeVar

from pydantic import ValidationError

from src.api.models import (
    CatalogEntry,
    CatalogResponse,
    ChallengeResponse,
    ChallengeSnapshot,
    ChallengeCodeRequest,
    CreateChallengeRequest,
    PlaceNumberRequest,
    PlacementResponse,
    PlayerModel,
    PlayerResponse,
    RosterResponse,
    ServiceResponse,
)
from src.config import Settings
from src.core.context import PeerContext
from src.core.exceptions import (
    ChallengeNotFoundError,
    MasterUnreachableError,
    MessengerFailureError,
    RepositoryError,
    StaleWriteError,
    StoreFailureError,
    SudokuError,
)
from src.core.models import ChallengeRecord
from src.core.shared_types import Outcome
from src.db.database import build_engine, build_session_factory
from src.db.repository import ABSENT, CHALLENGES, PLAYERS, SharedStore, store_key
from src.db.sql_repository import SQLSharedStore
from src.messaging.listener import MessageListener
from src.messaging.messenger import Messenger
from src.services.broadcaster import Broadcaster
from src.services.catalog import ChallengeCatalog
from src.services.registry import PeerRegistry
from src.services.session import ChallengeSession

logger = logging.getLogger(__name__)

R = TypeVar("R", bound=ServiceResponse)


class SudokuService:
    """Entry point of one peer."""

    def __init__(
        self,
        store: SharedStore,
        messenger: Messenger,
        settings: Optional[Settings] = None,
        address: Optional[str] = None,
    ) -> None:
        self.settings = settings or Settings()
        self.store = store
        self.context = PeerContext(address=address or self.settings.address)
        self.broadcaster = Broadcaster(messenger)
        self.registry = PeerRegistry(store, self.context, self.settings)
        self.catalog = ChallengeCatalog(
            store, self.context, self.registry, self.broadcaster, self.settings
        )
        self.session = ChallengeSession(
            store,
            self.context,
            self.catalog,
            self.registry,
            self.broadcaster,
            self.settings,
        )
        self.listener = MessageListener(self.context)

    # --- Startup / shutdown ---
    def bootstrap(self) -> None:
        """Join the network: the shared store must answer and hold both shared collections."""
        try:
            self.store.ping()
            for identifier in (PLAYERS, CHALLENGES):
                self._ensure_collection(identifier)
            self.registry.refresh()
            self.catalog.refresh()
        except StoreFailureError as exc:
            raise MasterUnreachableError(f"Cannot join the network: {exc}") from exc
        logger.info("Peer at %s joined the network", self.context.address)

    def leave_network(self) -> ServiceResponse:
        """Remove the local player from the shared roster."""
        try:
            self.registry.remove(self.context.nickname)
        except SudokuError as exc:
            return self._failure(ServiceResponse, exc)
        return ServiceResponse(outcome=Outcome.SUCCESS)

    def shutdown(self) -> None:
        """Best-effort departure, then forget everything known locally."""
        if self.context.player is not None:
            response = self.leave_network()
            if not response.ok:
                logger.warning("Leaving the roster failed: %s", response.detail)
        self.context.clear()
        logger.info("Peer at %s shut down", self.context.address)

    def handle_message(self, payload: str) -> str:
        """Hook for the transport: incoming direct messages end up here."""
        return self.listener.handle(payload)

    # --- Players ---
    def register(self, nickname: str) -> PlayerResponse:
        try:
            player = self.registry.register(nickname)
        except SudokuError as exc:
            return self._failure(PlayerResponse, exc)
        return PlayerResponse(
            outcome=Outcome.SUCCESS, player=PlayerModel.from_record(player)
        )

    def refresh_roster(self) -> RosterResponse:
        try:
            roster = self.registry.refresh()
        except SudokuError as exc:
            return self._failure(RosterResponse, exc)
        return RosterResponse(
            outcome=Outcome.SUCCESS,
            players=[PlayerModel.from_record(player) for player in roster],
        )

    # --- Catalog ---
    def list_open_challenges(self) -> CatalogResponse:
        """Locally known open challenges (kept up to date by refreshes and catalog notifications)."""
        return self._catalog_response()

    def refresh_catalog(self) -> CatalogResponse:
        try:
            self.catalog.refresh()
        except SudokuError as exc:
            return self._failure(CatalogResponse, exc)
        return self._catalog_response()

    def create_challenge(self, code: str, seed: int = 0) -> ChallengeResponse:
        try:
            request = CreateChallengeRequest(code=code, seed=seed)
            record = self.catalog.create(request.code, request.seed)
        except ValidationError as exc:
            return self._invalid_request(ChallengeResponse, exc)
        except SudokuError as exc:
            return self._failure(ChallengeResponse, exc)
        return self._challenge_response(record)

    # --- Challenge session ---
    def join_challenge(self, code: str) -> ChallengeResponse:
        try:
            request = ChallengeCodeRequest(code=code)
            record = self.session.join(request.code)
        except ValidationError as exc:
            return self._invalid_request(ChallengeResponse, exc)
        except SudokuError as exc:
            return self._failure(ChallengeResponse, exc)
        return self._challenge_response(record)

    def start_challenge(self, code: str) -> ChallengeResponse:
        try:
            request = ChallengeCodeRequest(code=code)
            record = self.session.start(request.code)
        except ValidationError as exc:
            return self._invalid_request(ChallengeResponse, exc)
        except SudokuError as exc:
            return self._failure(ChallengeResponse, exc)
        return self._challenge_response(record)

    def quit_challenge(self, code: str) -> ChallengeResponse:
        try:
            request = ChallengeCodeRequest(code=code)
            record = self.session.quit(request.code)
        except ValidationError as exc:
            return self._invalid_request(ChallengeResponse, exc)
        except SudokuError as exc:
            return self._failure(ChallengeResponse, exc)
        return self._challenge_response(record)

    def place_number(self, code: str, x: int, y: int, value: int) -> PlacementResponse:
        try:
            request = PlaceNumberRequest(code=code, x=x, y=y, value=value)
        except ValidationError as exc:
            return self._invalid_request(PlacementResponse, exc)
        except SudokuError as exc:
            return self._failure(PlacementResponse, exc)
        return self._place(request)

    def place_notation(self, code: str, notation: str) -> PlacementResponse:
        """Same as place_number, for player input such as 'AB-5'."""
        try:
            request = PlaceNumberRequest.from_notation(code, notation)
        except ValidationError as exc:
            return self._invalid_request(PlacementResponse, exc)
        except SudokuError as exc:
            return self._failure(PlacementResponse, exc)
        return self._place(request)

    def refresh_session(self) -> ChallengeResponse:
        """Reload the current challenge. A challenge that vanished is reported as terminated."""
        if self.context.session is None:
            return ChallengeResponse(
                outcome=Outcome.NOT_FOUND, detail="Not playing any challenge."
            )
        try:
            self.session.fetch(self.context.session.code)
        except ChallengeNotFoundError as exc:
            return self._failure(ChallengeResponse, exc, snapshot=self.context.session)
        except SudokuError as exc:
            return self._failure(ChallengeResponse, exc)
        return self.current_session_snapshot()

    def current_session_snapshot(self) -> ChallengeResponse:
        """Locally known state of the current challenge, plus notices received since the last call."""
        if self.context.session is None:
            return ChallengeResponse(
                outcome=Outcome.NOT_FOUND,
                detail="Not playing any challenge.",
                notices=self.context.pop_notices(),
            )
        return ChallengeResponse(
            outcome=Outcome.SUCCESS,
            challenge=ChallengeSnapshot.from_record(self.context.session),
            notices=self.context.pop_notices(),
        )

    # -- Internal helpers --
    def _place(self, request: PlaceNumberRequest) -> PlacementResponse:
        try:
            placement = self.session.place_number(
                request.code, request.x, request.y, request.value
            )
        except SudokuError as exc:
            return self._failure(PlacementResponse, exc, snapshot=self.context.session)
        return PlacementResponse(
            outcome=Outcome.SUCCESS,
            score_delta=placement.value,
            challenge=self._snapshot(self.context.session),
        )

    def _ensure_collection(self, identifier: str) -> None:
        """Create an empty shared collection, unless another peer already did."""
        try:
            self.store.put(store_key(identifier), [], ABSENT)
        except StaleWriteError:
            logger.debug("Shared collection %r already exists", identifier)

    def _catalog_response(self) -> CatalogResponse:
        return CatalogResponse(
            outcome=Outcome.SUCCESS,
            challenges=[CatalogEntry.from_summary(entry) for entry in self.context.catalog],
        )

    def _challenge_response(self, record: Optional[ChallengeRecord]) -> ChallengeResponse:
        return ChallengeResponse(
            outcome=Outcome.SUCCESS, challenge=self._snapshot(record)
        )

    def _snapshot(self, record: Optional[ChallengeRecord]) -> Optional[ChallengeSnapshot]:
        return ChallengeSnapshot.from_record(record) if record is not None else None

    def _invalid_request(self, response_type: type[R], exc: ValidationError) -> R:
        """Type errors reported by pydantic itself. A bad code wins over any other bad field."""
        fields = {error["loc"][0] for error in exc.errors() if error["loc"]}
        outcome = Outcome.INVALID_CODE if "code" in fields else Outcome.INVALID_MOVE
        logger.info("Request rejected (%s): %s", outcome, exc)
        return response_type(outcome=outcome, detail=str(exc))

    def _failure(
        self,
        response_type: type[R],
        exc: SudokuError,
        snapshot: Optional[ChallengeRecord] = None,
    ) -> R:
        """Infrastructure failures are logged as warnings, rejected requests are expected and only logged at info."""
        if isinstance(exc, (RepositoryError, MessengerFailureError)):
            logger.warning("%s: %s", exc.outcome, exc)
        else:
            logger.info("Request rejected (%s): %s", exc.outcome, exc)
        if snapshot is not None and response_type in (ChallengeResponse, PlacementResponse):
            return response_type(
                outcome=exc.outcome,
                detail=str(exc),
                challenge=ChallengeSnapshot.from_record(snapshot),
            )
        return response_type(outcome=exc.outcome, detail=str(exc))


def connect(settings: Settings, messenger: Messenger) -> SudokuService:
    """
    Build a peer backed by the SQL shared store described in settings and join the network.
    Raises MasterUnreachableError if the store cannot be reached.
    """
    engine = build_engine(settings)
    session_factory = build_session_factory(engine)
    service = SudokuService(SQLSharedStore(session_factory()), messenger, settings)
    service.bootstrap()
    return service
