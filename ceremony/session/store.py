"""
Validation Store - Per-epoch answers kept outside the session state.

The store:
- Holds one PersistedValidation (the current epoch's)
- Is read once when a session mounts
- Is reset when the session sees a new epoch
- Only needs to survive the process; a JSON file store is provided
  for clients that restart mid-ceremony

Design decisions:
- The session owns the store; nothing else writes it
- Answer payloads are stored exactly as they were submitted
"""

from __future__ import annotations
import json
import logging
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Any

from ..engine_core.state import PersistedValidation

logger = logging.getLogger(__name__)


class ValidationStore(ABC):
    """Store interface injected into the validation session."""

    @abstractmethod
    def get(self) -> PersistedValidation:
        """Return the persisted validation."""
        pass

    @abstractmethod
    def reset(self, epoch: int) -> None:
        """Forget all answers and start tracking a new epoch."""
        pass

    @abstractmethod
    def set_short_answers(self, payload: list[dict[str, Any]], epoch: int | None) -> None:
        pass

    @abstractmethod
    def set_long_answers(self, payload: list[dict[str, Any]], epoch: int | None) -> None:
        pass


class InMemoryValidationStore(ValidationStore):
    """Store that lives as long as the process."""

    def __init__(self, validation: PersistedValidation | None = None):
        self._validation = validation or PersistedValidation()

    def get(self) -> PersistedValidation:
        return self._validation

    def reset(self, epoch: int) -> None:
        self._validation = PersistedValidation(epoch=epoch)

    def set_short_answers(self, payload: list[dict[str, Any]], epoch: int | None) -> None:
        self._validation.short_answers = payload
        self._validation.epoch = epoch

    def set_long_answers(self, payload: list[dict[str, Any]], epoch: int | None) -> None:
        self._validation.long_answers = payload
        self._validation.epoch = epoch


class JsonFileValidationStore(InMemoryValidationStore):
    """
    In-memory store mirrored to a JSON file.

    Usage:
        store = JsonFileValidationStore("~/.ceremony/validation.json")
        validation = store.get()
    """

    def __init__(self, path: str | Path):
        self.path = Path(path).expanduser()
        self.path.parent.mkdir(parents=True, exist_ok=True)
        super().__init__(self._load())

    def reset(self, epoch: int) -> None:
        super().reset(epoch)
        self._save()

    def set_short_answers(self, payload: list[dict[str, Any]], epoch: int | None) -> None:
        super().set_short_answers(payload, epoch)
        self._save()

    def set_long_answers(self, payload: list[dict[str, Any]], epoch: int | None) -> None:
        super().set_long_answers(payload, epoch)
        self._save()

    def _load(self) -> PersistedValidation:
        """Load the file; a missing or unreadable file starts empty."""
        if not self.path.exists():
            return PersistedValidation()

        try:
            with open(self.path, "r", encoding="utf-8") as f:
                data = json.load(f)
            answers = data.get("answers") or [None, None]
            answers = (list(answers) + [None, None])[:2]
            return PersistedValidation(
                epoch=data.get("epoch"),
                short_answers=answers[0],
                long_answers=answers[1],
            )
        except (OSError, ValueError, AttributeError) as e:
            logger.warning("Discarding unreadable validation store %s: %s", self.path, e)
            self.path.unlink(missing_ok=True)
            return PersistedValidation()

    def _save(self) -> None:
        validation = self.get()
        data = {
            "epoch": validation.epoch,
            "answers": [validation.short_answers, validation.long_answers],
        }
        with open(self.path, "w", encoding="utf-8") as f:
            json.dump(data, f, indent=2)


def create_store(store_path: str | None = None) -> ValidationStore:
    """File-backed store if a path is configured, in-memory otherwise."""
    if store_path:
        return JsonFileValidationStore(store_path)
    return InMemoryValidationStore()
