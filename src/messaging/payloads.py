"""
Wire format of the direct messages exchanged between peers.

Every payload is a JSON object with an explicit `kind` discriminant, so the receiver never has to guess
from the shape of the data whether it got a catalog or a challenge.
"""

from typing import Annotated, Literal, Union

from pydantic import BaseModel, Field, TypeAdapter

from src.api.models import CatalogEntry, ChallengeSnapshot
from src.core.models import ChallengeRecord, ChallengeSummary


class CatalogUpdate(BaseModel):
    kind: Literal["catalog"] = "catalog"
    challenges: list[CatalogEntry]


class SessionUpdate(BaseModel):
    kind: Literal["session"] = "session"
    challenge: ChallengeSnapshot


Envelope = Annotated[Union[CatalogUpdate, SessionUpdate], Field(discriminator="kind")]

_envelope_adapter: TypeAdapter[CatalogUpdate | SessionUpdate] = TypeAdapter(Envelope)


def encode_catalog(catalog: list[ChallengeSummary]) -> str:
    update = CatalogUpdate(
        challenges=[CatalogEntry.from_summary(entry) for entry in catalog]
    )
    return update.model_dump_json()


def encode_session(record: ChallengeRecord) -> str:
    return SessionUpdate(challenge=ChallengeSnapshot.from_record(record)).model_dump_json()


def decode(payload: str | bytes) -> CatalogUpdate | SessionUpdate:
    """Raises pydantic.ValidationError for anything that is not a known envelope."""
    return _envelope_adapter.validate_json(payload)
