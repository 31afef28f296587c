"""
Saved-game store. Every read and write is scoped to the owner inside the same query,
so a record owned by someone else behaves exactly like a record that does not exist.
"""

import json
import logging
import uuid
from datetime import datetime
from typing import Any, Callable

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from .errors import DuplicateName, InternalError, NotFound, OwnerNotFound, ValidationError, constraint_kind
from .models import SavedGame, utcnow

logger = logging.getLogger(__name__)


class GameRecordStore:
    def __init__(self, db: Session, clock: Callable[[], datetime] = utcnow):
        self.db = db
        self.clock = clock

    def save(self, owner_id: str, name: str | None, state: Any) -> str:
        """Insert a new saved game and return its id."""
        name = (name or "").strip()
        if not name or state is None:
            raise ValidationError("Game name and state are required")
        game_id = str(uuid.uuid4())
        row = SavedGame(
            id=game_id,
            owner_id=owner_id,
            name=name,
            state=json.dumps(state),
            last_modified=self.clock(),
        )
        self.db.add(row)
        try:
            self.db.commit()
        except IntegrityError as e:
            self.db.rollback()
            kind = constraint_kind(e)
            if kind == "unique":
                raise DuplicateName()
            if kind == "foreign_key":
                raise OwnerNotFound()
            logger.exception("Saved game insert failed for owner %s", owner_id)
            raise InternalError()
        return game_id

    def overwrite(self, owner_id: str, record_id: str, state: Any) -> None:
        """Replace state and bump last_modified in place."""
        if state is None:
            raise ValidationError("Game state is required")
        updated = (
            self.db.query(SavedGame)
            .filter(SavedGame.id == record_id, SavedGame.owner_id == owner_id)
            .update(
                {SavedGame.state: json.dumps(state), SavedGame.last_modified: self.clock()},
                synchronize_session=False,
            )
        )
        if not updated:
            self.db.rollback()
            raise NotFound("Game not found")
        self.db.commit()

    def list_games(self, owner_id: str) -> list[dict]:
        """Owner's saves, most recently modified first. State is not included."""
        rows = (
            self.db.query(SavedGame.id, SavedGame.name, SavedGame.last_modified)
            .filter(SavedGame.owner_id == owner_id)
            .order_by(SavedGame.last_modified.desc())
            .all()
        )
        return [{"id": r.id, "name": r.name, "last_modified": r.last_modified} for r in rows]

    def load(self, owner_id: str, record_id: str) -> Any:
        row = (
            self.db.query(SavedGame.state)
            .filter(SavedGame.id == record_id, SavedGame.owner_id == owner_id)
            .first()
        )
        if row is None:
            raise NotFound("Game not found")
        return json.loads(row.state)

    def delete(self, owner_id: str, record_id: str) -> None:
        deleted = (
            self.db.query(SavedGame)
            .filter(SavedGame.id == record_id, SavedGame.owner_id == owner_id)
            .delete(synchronize_session=False)
        )
        if not deleted:
            self.db.rollback()
            raise NotFound("Game not found")
        self.db.commit()
