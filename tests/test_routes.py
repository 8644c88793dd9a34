import asyncio
import inspect

import pytest
from fastapi.testclient import TestClient

from app.main import app
from app.routes.workflow import SAVED_MESSAGE
from promptgen.workflow.categories import SELECT, Choice, FieldSpec
from promptgen.workflow import templates as tpl
from promptgen.workflow.runner import ERROR_TEXT, PENDING


client = TestClient(app)

TEXT_VALUES = {"tema": "IA", "estilo": "formal", "objetivo": "explicar", "audiencia": "estudiantes"}


@pytest.fixture(autouse=True)
def _wf(installed_workflow):
    yield installed_workflow


def _generate(values=None):
    r = client.post("/api/workflow/generate", json={"form_values": values or TEXT_VALUES})
    assert r.status_code == 200, r.text
    return r.json()


def test_list_categories():
    r = client.get("/api/categories")
    assert r.status_code == 200
    data = r.json()
    assert [c["category"] for c in data] == ["TEXTO", "IMAGEN", "VIDEO", "SONIDO", "CODIGO"]
    assert [f["id"] for f in data[0]["fields"]] == ["tema", "estilo", "objetivo", "audiencia"]
    assert data[0]["fields"][2]["kind"] == "textarea"


def test_unknown_category_is_404():
    assert client.get("/api/categories/PODCAST").status_code == 404
    assert client.post("/api/categories/PODCAST/render", json={}).status_code == 404


def test_render_preview():
    r = client.post("/api/categories/TEXTO/render", json={"form_values": TEXT_VALUES})
    assert r.status_code == 200
    assert r.json()["instruction"] == (
        'Escribe un texto sobre "IA" con un estilo formal. '
        "El objetivo es explicar para una audiencia de estudiantes."
    )


def test_state_select_category_and_fields():
    r = client.get("/api/workflow")
    assert r.status_code == 200
    assert r.json()["category"] == "TEXTO"
    assert r.json()["status"] == "idle"

    r2 = client.post("/api/workflow/category", json={"category": "CODIGO"})
    assert r2.status_code == 200
    assert r2.json()["form_values"] == {"lenguaje": "", "funcionalidad": "", "framework": ""}

    r3 = client.patch("/api/workflow/fields", json={"form_values": {"lenguaje": "Rust", "tema": "x"}})
    assert r3.status_code == 200
    assert r3.json()["form_values"]["lenguaje"] == "Rust"
    assert "tema" not in r3.json()["form_values"]

    assert client.post("/api/workflow/category", json={"category": "PODCAST"}).status_code == 422


def test_generate_improve_save_flow(installed_workflow):
    completer = installed_workflow._completer
    completer.replies.extend(["primera", "mejorada"])

    data = _generate()
    assert data["generated_text"] == "primera"
    assert data["status"] == "idle"
    assert data["can_save"] is True

    r = client.post("/api/workflow/improve")
    assert r.status_code == 200
    assert r.json()["generated_text"] == "mejorada"

    r2 = client.post("/api/workflow/save")
    assert r2.status_code == 200
    body = r2.json()
    assert body["message"] == SAVED_MESSAGE
    assert body["saved"]["text"] == "mejorada"
    assert body["saved"]["form_values"] == TEXT_VALUES

    r3 = client.get("/api/saved")
    assert [s["id"] for s in r3.json()] == [body["saved"]["id"]]


def test_save_without_result_is_noop():
    r = client.post("/api/workflow/save")
    assert r.status_code == 200
    assert r.json() == {"saved": None, "message": None}
    assert client.get("/api/saved").json() == []


def test_generate_failure_returns_fallback_text(installed_workflow):
    installed_workflow._completer.error = TimeoutError("deadline exceeded")
    data = _generate()
    assert data["generated_text"] == ERROR_TEXT
    assert data["status"] == "idle"


def test_commands_rejected_while_pending(installed_workflow):
    installed_workflow.status = PENDING
    try:
        assert client.post("/api/workflow/generate", json={}).status_code == 409
        assert client.post("/api/workflow/improve").status_code == 409
        assert client.post("/api/workflow/category", json={"category": "IMAGEN"}).status_code == 409
    finally:
        installed_workflow.status = "idle"
    assert installed_workflow._completer.calls == []


def test_saved_select_and_delete(installed_workflow):
    installed_workflow._completer.replies.append("resultado")
    _generate()
    sid = client.post("/api/workflow/save").json()["saved"]["id"]

    client.post("/api/workflow/category", json={"category": "VIDEO"})
    r = client.post(f"/api/saved/{sid}/select")
    assert r.status_code == 200
    assert r.json()["category"] == "TEXTO"
    assert r.json()["form_values"] == TEXT_VALUES
    assert r.json()["generated_text"] == "resultado"

    assert client.get(f"/api/saved/{sid}").status_code == 200
    assert client.post("/api/saved/missing/select").status_code == 404

    d = client.delete(f"/api/saved/{sid}")
    assert d.json() == {"id": sid, "deleted": True}
    assert client.delete(f"/api/saved/{sid}").json()["deleted"] is False
    assert client.get("/api/saved").json() == []


def test_workflow_state_survives_across_requests(installed_workflow):
    _generate()
    assert asyncio.run(installed_workflow.improve()) is not None
    assert client.get("/api/workflow").json()["generated_text"] == installed_workflow.generated_text


def test_workflow_and_saved_handlers_run_on_event_loop():
    paths = []
    for route in app.routes:
        path = getattr(route, "path", "")
        if path.startswith(("/api/workflow", "/api/saved")):
            paths.append(path)
            assert inspect.iscoroutinefunction(route.endpoint), path
    assert "/api/workflow/save" in paths
    assert "/api/saved/{saved_id}" in paths


def test_category_fields_expose_defaults_and_choices(monkeypatch):
    spec = tpl.TemplateSpec(
        category="SONIDO",
        fields=(
            FieldSpec(
                "genero",
                "Género",
                "Elige un género",
                SELECT,
                default="lofi",
                choices=(Choice("lofi", "Lo-fi"), Choice("cine", "Cinemático")),
            ),
        ),
        render=lambda v: f"Genera música {v.get('genero', '')}.",
    )
    monkeypatch.setitem(tpl.REGISTRY, "SONIDO", spec)

    r = client.get("/api/categories/SONIDO")
    assert r.status_code == 200
    field = r.json()["fields"][0]
    assert field["kind"] == "select"
    assert field["default"] == "lofi"
    assert field["choices"] == [{"value": "lofi", "label": "Lo-fi"}, {"value": "cine", "label": "Cinemático"}]

    r2 = client.post("/api/workflow/category", json={"category": "SONIDO"})
    assert r2.json()["form_values"] == {"genero": "lofi"}

    r3 = client.post("/api/categories/SONIDO/render", json={"form_values": {}})
    assert r3.json()["instruction"] == "Genera música lofi."
