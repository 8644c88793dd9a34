from dataclasses import dataclass
from typing import List, Optional, Tuple


# Category constants (also the persisted/wire representation)
TEXT = "TEXTO"
IMAGE = "IMAGEN"
VIDEO = "VIDEO"
SOUND = "SONIDO"
CODE = "CODIGO"

CATEGORIES: Tuple[str, ...] = (TEXT, IMAGE, VIDEO, SOUND, CODE)

# Input kinds
INPUT = "input"
TEXTAREA = "textarea"
SELECT = "select"


@dataclass(frozen=True)
class Choice:
    value: str
    label: str


@dataclass(frozen=True)
class FieldSpec:
    id: str
    label: str
    placeholder: str
    kind: str = INPUT  # "input" | "textarea" | "select"
    default: Optional[str] = None
    choices: Tuple[Choice, ...] = ()


def is_category(value: object) -> bool:
    return isinstance(value, str) and value in CATEGORIES


def require_category(value: str) -> str:
    if not is_category(value):
        raise ValueError(f"unknown category: {value}")
    return value


FIELDS = {
    TEXT: (
        FieldSpec("tema", "Tema principal", "Ej: El futuro de la inteligencia artificial"),
        FieldSpec("estilo", "Estilo de escritura", "Ej: Formal, amigable, técnico, poético"),
        FieldSpec("objetivo", "Objetivo del texto", "Ej: Explicar un concepto complejo de forma sencilla", TEXTAREA),
        FieldSpec("audiencia", "Audiencia objetivo", "Ej: Estudiantes universitarios, público general"),
    ),
    IMAGE: (
        FieldSpec(
            "descripcion",
            "Descripción de la imagen",
            "Ej: Un astronauta montando a caballo en Marte, estilo fotorrealista",
            TEXTAREA,
        ),
        FieldSpec("estilo", "Estilo artístico", "Ej: Van Gogh, Cyberpunk, Acuarela"),
        FieldSpec("colores", "Paleta de colores", "Ej: Colores cálidos, tonos pastel, neón"),
    ),
    VIDEO: (
        FieldSpec(
            "escena",
            "Descripción de la escena",
            "Ej: Una persecución de coches en una ciudad futurista de noche",
            TEXTAREA,
        ),
        FieldSpec("ambiente", "Ambiente / Mood", "Ej: Lleno de suspense, cómico, épico"),
        FieldSpec("duracion", "Duración aproximada", "Ej: 15 segundos"),
    ),
    SOUND: (
        FieldSpec("tipo", "Tipo de sonido o música", "Ej: Efecto de sonido, loop de batería, melodía de piano"),
        FieldSpec("genero", "Género / Estilo", "Ej: Lo-fi, cinemático, ciencia ficción, naturaleza"),
        FieldSpec(
            "descripcion",
            "Descripción detallada",
            "Ej: Sonido de lluvia cayendo sobre una ventana, con truenos lejanos",
            TEXTAREA,
        ),
    ),
    CODE: (
        FieldSpec("lenguaje", "Lenguaje de programación", "Ej: JavaScript, Python, Rust"),
        FieldSpec(
            "funcionalidad",
            "Funcionalidad a implementar",
            "Ej: Una función que ordene un array de objetos por una propiedad",
            TEXTAREA,
        ),
        FieldSpec("framework", "Framework o librería (opcional)", "Ej: React, Django, Express"),
    ),
}


def field_ids(category: str) -> List[str]:
    return [f.id for f in FIELDS[category]]
