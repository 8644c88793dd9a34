from __future__ import annotations

import logging
import threading
from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from typing import Any, Awaitable, Callable, Dict, List, Optional, Protocol

from promptgen.workflow.categories import TEXT, require_category
from promptgen.workflow import templates as tpl


log = logging.getLogger("promptgen.workflow")

IDLE = "idle"
PENDING = "pending"

GENERATE_FRAME = (
    "Eres un experto en la creación de prompts para IA. Basado en la siguiente idea, "
    'genera un prompt detallado y efectivo en español. Idea del usuario: "{instruction}"'
)
IMPROVE_FRAME = (
    "Mejora y expande el siguiente prompt para obtener mejores resultados de una IA generativa. "
    "Hazlo más detallado, añade contexto y sugiere parámetros si es aplicable. "
    'Mantén el idioma español. Prompt a mejorar: "{text}"'
)
ERROR_TEXT = "Hubo un error al conectar con la IA. Por favor, inténtalo de nuevo."

ID_FORMAT = "%Y-%m-%dT%H:%M:%S.%fZ"

# (model, text) -> generated text
Completer = Callable[[str, str], Awaitable[Optional[str]]]


class WorkflowBusyError(RuntimeError):
    """Raised when a command that needs the idle state arrives while a request is in flight."""


@dataclass(frozen=True)
class SavedResult:
    id: str
    category: str
    form_values: Dict[str, str] = field(default_factory=dict)
    text: str = ""

    def to_record(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "category": self.category,
            "form_values": dict(self.form_values),
            "text": self.text,
        }

    @classmethod
    def from_record(cls, rec: Dict[str, Any]) -> "SavedResult":
        if not isinstance(rec, dict):
            raise ValueError("saved record must be an object")
        rid = rec.get("id")
        text = rec.get("text")
        values = rec.get("form_values") or {}
        if not isinstance(rid, str) or not rid:
            raise ValueError("saved record missing id")
        if not isinstance(text, str):
            raise ValueError(f"saved record {rid} missing text")
        if not isinstance(values, dict):
            raise ValueError(f"saved record {rid} has invalid form_values")
        return cls(
            id=rid,
            category=require_category(rec.get("category")),
            form_values={str(k): "" if v is None else str(v) for k, v in values.items()},
            text=text,
        )


class ListStore(Protocol):
    def load(self) -> List[SavedResult]: ...

    def save(self, items: List[SavedResult]) -> None: ...


def _format_id(ts: datetime) -> str:
    return ts.strftime(ID_FORMAT)


def _parse_id(value: str) -> Optional[datetime]:
    try:
        return datetime.strptime(value, ID_FORMAT).replace(tzinfo=timezone.utc)
    except ValueError:
        return None


class GenerationWorkflow:
    """Idle/Pending state machine behind the prompt generator.

    Commands are meant to run on a single event loop. ``generate`` and
    ``improve`` flip to ``pending`` before their first ``await``, so a second
    request issued while one is in flight raises :class:`WorkflowBusyError`
    instead of queueing. Remote failures never escape: they become
    ``ERROR_TEXT``.

    An internal lock makes the idle check and the flip to ``pending`` one
    step, and holds every saved-list change together with its store write.
    Callers on other threads therefore cannot interleave transitions or
    persist a stale list.
    """

    def __init__(
        self,
        completer: Completer,
        store: ListStore,
        model: str,
        category: str = TEXT,
        clock: Callable[[], datetime] = lambda: datetime.now(timezone.utc),
    ) -> None:
        self._completer = completer
        self._store = store
        self._clock = clock
        # guards state transitions and every saved-list change with its store write
        self._lock = threading.Lock()
        self.model = model
        self.status = IDLE
        self.category = require_category(category)
        self.form_values: Dict[str, str] = tpl.default_values(self.category)
        self.generated_text: Optional[str] = None
        # form values of the cycle that produced generated_text
        self.snapshot: Optional[Dict[str, str]] = None
        self._saved: List[SavedResult] = list(store.load())
        self._last_id: Optional[datetime] = None
        for item in self._saved:
            ts = _parse_id(item.id)
            if ts and (self._last_id is None or ts > self._last_id):
                self._last_id = ts
        log.info("workflow_init model=%s category=%s saved=%s", model, self.category, len(self._saved))

    # -- read side -------------------------------------------------------

    @property
    def pending(self) -> bool:
        return self.status == PENDING

    @property
    def saved(self) -> List[SavedResult]:
        return list(self._saved)

    def find_saved(self, saved_id: str) -> Optional[SavedResult]:
        for item in self._saved:
            if item.id == saved_id:
                return item
        return None

    def state(self) -> Dict[str, Any]:
        return {
            "status": self.status,
            "category": self.category,
            "form_values": dict(self.form_values),
            "generated_text": self.generated_text,
            "can_save": self._can_save(),
            "saved_count": len(self._saved),
        }

    # -- commands --------------------------------------------------------

    def _require_idle(self, command: str) -> None:
        # caller holds self._lock
        if self.status != IDLE:
            log.warning("workflow_busy command=%s category=%s", command, self.category)
            raise WorkflowBusyError(f"{command} rejected: a request is already in flight")

    def select_category(self, category: str) -> None:
        category = require_category(category)
        with self._lock:
            self._require_idle("select_category")
            self.category = category
            self.form_values = tpl.default_values(self.category)
            self.generated_text = None
            self.snapshot = None
        log.info("workflow_select_category category=%s", category)

    def set_field(self, field_id: str, value: Optional[str]) -> bool:
        with self._lock:
            if field_id not in self.form_values:
                log.debug("workflow_set_field_ignored category=%s field=%s", self.category, field_id)
                return False
            self.form_values[field_id] = "" if value is None else str(value)
        return True

    async def generate(self, form_values: Optional[Dict[str, Any]] = None) -> str:
        with self._lock:
            self._require_idle("generate")
            self.status = PENDING
            try:
                values = tpl.normalize_values(self.category, self.form_values if form_values is None else form_values)
                self.form_values = dict(values)
                self.snapshot = dict(values)
                self.generated_text = None
                instruction = tpl.render(self.category, values)
            except Exception:
                self.status = IDLE
                raise
        contents = GENERATE_FRAME.format(instruction=instruction)
        log.info("workflow_generate category=%s instruction_len=%s", self.category, len(instruction))
        return await self._complete("generate", contents)

    async def improve(self) -> Optional[str]:
        with self._lock:
            self._require_idle("improve")
            if not self.generated_text:
                log.info("workflow_improve_skipped category=%s has_text=False", self.category)
                return None
            self.status = PENDING
            current = self.generated_text
        contents = IMPROVE_FRAME.format(text=current)
        log.info("workflow_improve category=%s text_len=%s", self.category, len(current))
        return await self._complete("improve", contents)

    async def _complete(self, command: str, contents: str) -> str:
        # status is already PENDING; the result and the flip back to IDLE land together
        text: Optional[str] = None
        try:
            text = await self._completer(self.model, contents)
            if not isinstance(text, str) or not text:
                raise ValueError("empty or malformed response from model")
        except Exception as e:
            log.error("workflow_%s_error model=%s error=%s", command, self.model, e)
            text = ERROR_TEXT
        finally:
            with self._lock:
                if text is not None:
                    self.generated_text = text
                self.status = IDLE
        log.info("workflow_%s_done category=%s result_len=%s", command, self.category, len(text))
        return text

    def _can_save(self) -> bool:
        return bool(self.generated_text) and self.snapshot is not None

    def _next_id(self) -> str:
        now = self._clock()
        if self._last_id is not None and now <= self._last_id:
            now = self._last_id + timedelta(microseconds=1)
        self._last_id = now
        return _format_id(now)

    def save(self) -> Optional[SavedResult]:
        # The lock spans the list change and the store write, so writes land in order.
        with self._lock:
            if not self._can_save():
                log.info(
                    "workflow_save_skipped has_text=%s has_snapshot=%s",
                    bool(self.generated_text),
                    self.snapshot is not None,
                )
                return None
            item = SavedResult(
                id=self._next_id(),
                category=self.category,
                form_values=dict(self.snapshot or {}),
                text=self.generated_text or "",
            )
            self._saved.insert(0, item)
            self._store.save(list(self._saved))
            total = len(self._saved)
        log.info("workflow_saved id=%s category=%s total=%s", item.id, item.category, total)
        return item

    def delete_saved(self, saved_id: str) -> bool:
        with self._lock:
            remaining = [s for s in self._saved if s.id != saved_id]
            if len(remaining) == len(self._saved):
                return False
            self._saved = remaining
            self._store.save(list(self._saved))
            total = len(self._saved)
        log.info("workflow_deleted id=%s total=%s", saved_id, total)
        return True

    def select_saved(self, saved: SavedResult) -> None:
        category = require_category(saved.category)
        with self._lock:
            self._require_idle("select_saved")
            self.category = category
            values = tpl.normalize_values(self.category, saved.form_values)
            self.form_values = dict(values)
            self.snapshot = dict(values)
            self.generated_text = saved.text
        log.info("workflow_select_saved id=%s category=%s", saved.id, category)
