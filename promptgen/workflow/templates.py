from dataclasses import dataclass
from typing import Callable, Dict, List, Mapping, Optional

from promptgen.workflow.categories import CODE, FIELDS, IMAGE, SOUND, TEXT, VIDEO, FieldSpec


FormValues = Dict[str, str]


class _Blank(dict):
    """format_map mapping that renders unknown placeholders as empty strings."""

    def __missing__(self, key: str) -> str:
        return ""


def _clean(values: Optional[Mapping[str, object]]) -> _Blank:
    out = _Blank()
    for k, v in (values or {}).items():
        out[k] = "" if v is None else str(v)
    return out


def _formatted(template: str) -> Callable[[Mapping[str, object]], str]:
    def render(values: Mapping[str, object]) -> str:
        return template.format_map(_clean(values))

    return render


def _render_code(values: Mapping[str, object]) -> str:
    v = _clean(values)
    using = f"usando {v['framework']}" if v["framework"] else ""
    return (
        f"Escribe código en {v['lenguaje']} {using} para implementar la siguiente funcionalidad: "
        f"{v['funcionalidad']}. Añade comentarios explicando las partes clave."
    )


@dataclass(frozen=True)
class TemplateSpec:
    category: str
    fields: tuple
    render: Callable[[Mapping[str, object]], str]


REGISTRY: Dict[str, TemplateSpec] = {
    TEXT: TemplateSpec(
        category=TEXT,
        fields=FIELDS[TEXT],
        render=_formatted(
            'Escribe un texto sobre "{tema}" con un estilo {estilo}. '
            "El objetivo es {objetivo} para una audiencia de {audiencia}."
        ),
    ),
    IMAGE: TemplateSpec(
        category=IMAGE,
        fields=FIELDS[IMAGE],
        render=_formatted(
            "Genera una imagen de {descripcion}, con un estilo artístico de {estilo}. "
            "La paleta de colores principal debe ser de {colores}."
        ),
    ),
    VIDEO: TemplateSpec(
        category=VIDEO,
        fields=FIELDS[VIDEO],
        render=_formatted(
            "Crea un clip de video de una escena de {escena}. "
            "El ambiente debe ser {ambiente}. Duración aproximada: {duracion}."
        ),
    ),
    SOUND: TemplateSpec(
        category=SOUND,
        fields=FIELDS[SOUND],
        render=_formatted("Genera un {tipo} de estilo {genero}. Descripción: {descripcion}."),
    ),
    CODE: TemplateSpec(
        category=CODE,
        fields=FIELDS[CODE],
        render=_render_code,
    ),
}


def fields_for(category: str) -> List[FieldSpec]:
    return list(REGISTRY[category].fields)


def default_values(category: str) -> FormValues:
    return {f.id: f.default or "" for f in REGISTRY[category].fields}


def normalize_values(category: str, values: Optional[Mapping[str, object]]) -> FormValues:
    """Project ``values`` onto the category's fields.

    Unknown keys are dropped, missing ones take the field default (or ``""``)
    and ``None`` becomes ``""``. Never raises for bad field data.
    """
    src = values or {}
    out: FormValues = {}
    for f in REGISTRY[category].fields:
        v = src.get(f.id)
        if v is None:
            v = f.default or ""
        out[f.id] = str(v)
    return out


def render(category: str, values: Optional[Mapping[str, object]]) -> str:
    return REGISTRY[category].render(values or {})
