import os
import sys
from dataclasses import dataclass
from typing import Any, Dict, List, Optional

import pytest
import warnings


# Ensure project root is on sys.path for `from app...` imports
ROOT = os.path.abspath(os.path.join(os.path.dirname(__file__), ".."))
if ROOT not in sys.path:
    sys.path.insert(0, ROOT)


# ---- Fake Supabase client for tests (in-memory) ----


@dataclass
class _Resp:
    data: Optional[List[Dict[str, Any]]] = None


class _Query:
    def __init__(self, table: "_Table"):
        self._table = table
        self._filters: List = []
        self._limit: Optional[int] = None
        self._select_cols: Optional[str] = None

    def select(self, cols: str, **kwargs):
        self._select_cols = cols
        return self

    def eq(self, key: str, value: Any):
        self._filters.append((key, value))
        return self

    def limit(self, n: int):
        self._limit = n
        return self

    def execute(self) -> _Resp:
        rows = list(self._table._rows)
        for k, v in self._filters:
            rows = [r for r in rows if r.get(k) == v]
        if self._limit is not None:
            rows = rows[: self._limit]
        if self._select_cols and self._select_cols.strip() != "*":
            cols = [c.strip() for c in self._select_cols.split(",")]
            rows = [{k: r.get(k) for k in cols} for r in rows]
        return _Resp(data=rows)


class _Table:
    def __init__(self, name: str, storage: Dict[str, List[Dict[str, Any]]]):
        self._name = name
        self._rows = storage.setdefault(name, [])
        self._pending_upsert: Optional[Dict[str, Any]] = None
        self._conflict_key = "id"

    def upsert(self, row: Dict[str, Any], on_conflict: str = "id"):
        self._pending_upsert = dict(row)
        self._conflict_key = on_conflict
        return self

    def execute(self) -> _Resp:
        if self._pending_upsert is None:
            return _Resp(data=[])
        row = self._pending_upsert
        self._pending_upsert = None
        key = self._conflict_key
        for i, existing in enumerate(self._rows):
            if existing.get(key) == row.get(key):
                self._rows[i] = row
                break
        else:
            self._rows.append(row)
        return _Resp(data=[row])

    def select(self, cols: str, **kwargs) -> _Query:
        return _Query(self).select(cols, **kwargs)


class FakeSupabase:
    def __init__(self):
        self._storage: Dict[str, List[Dict[str, Any]]] = {}
        self.fail = False

    def table(self, name: str) -> _Table:
        if self.fail:
            raise ConnectionError("supabase unreachable")
        return _Table(name, self._storage)

    def rows(self, name: str) -> List[Dict[str, Any]]:
        return self._storage.get(name, [])


# ---- Scripted stand-in for the Gemini completer ----


class FakeCompleter:
    def __init__(self):
        self.calls: List[tuple] = []
        self.replies: List[Any] = []
        self.error: Optional[BaseException] = None
        self.gate = None  # asyncio.Event; when set, calls wait on it

    async def __call__(self, model: str, text: str) -> Optional[str]:
        self.calls.append((model, text))
        if self.gate is not None:
            await self.gate.wait()
        if self.error is not None:
            raise self.error
        if self.replies:
            return self.replies.pop(0)
        return f"prompt generado #{len(self.calls)}"


@pytest.fixture
def fake_db():
    return FakeSupabase()


@pytest.fixture(autouse=True)
def _supabase_mode(monkeypatch, fake_db):
    """By default, tests use an in-memory fake Supabase.

    To run tests against a real Supabase project, export SUPABASE_TEST_REAL=true
    and ensure SUPABASE_URL and SUPABASE_SERVICE_ROLE_KEY are set.
    """
    use_real = os.getenv("SUPABASE_TEST_REAL", "false").lower() in {"1", "true", "yes"}
    if not use_real:
        import app.db as adb

        monkeypatch.setattr(adb, "get_client", lambda: fake_db, raising=True)
        monkeypatch.setattr(adb, "_require_env", lambda: None, raising=True)

    yield


@pytest.fixture
def completer():
    return FakeCompleter()


@pytest.fixture
def store(_supabase_mode):
    from app.store import SupabaseListStore

    return SupabaseListStore("saved-prompts")


@pytest.fixture
def workflow(completer, store):
    from promptgen.workflow.runner import GenerationWorkflow

    return GenerationWorkflow(completer=completer, store=store, model="gemini-test")


@pytest.fixture
def installed_workflow(workflow):
    """Install the test workflow on the FastAPI app for route tests."""
    from app.main import app

    app.state.workflow = workflow
    yield workflow
    app.state.workflow = None


# Suppress deprecation warnings coming from third-party libs during tests
warnings.filterwarnings("ignore", category=DeprecationWarning, module=r"supabase\..*")
warnings.filterwarnings("ignore", category=DeprecationWarning)
