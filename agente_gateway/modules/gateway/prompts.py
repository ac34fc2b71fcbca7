# agente_gateway/modules/gateway/prompts.py

from typing import List

from agente_gateway.modules.gateway.catalog import CATALOG, ActionId, Category, CategoryEntry


def describe_action(action: ActionId, entry: CategoryEntry) -> str:
    name = action.value
    if name.startswith("search"):
        return f"búsqueda con filtros: por {entry.filter_hint}" if entry.filter_hint else "búsqueda con filtros"
    if name.startswith("list"):
        return "listar todos sin filtros"
    if name.startswith("get") and name.endswith("ById"):
        return "obtener registro específico por ID"
    if name == ActionId.GET_CONFIG.value:
        return "obtener una configuración por ID o clave"
    if name.startswith("create"):
        return "crear nuevo registro"
    if name.startswith("update"):
        return "actualizar registro"
    if name.startswith("delete"):
        return "eliminar registro"
    if name.startswith("validateLogin"):
        return "validar credenciales"
    if name.startswith("resetPassword"):
        return "resetear contraseña"
    return name


def build_system_prompt() -> str:
    """Instruccion de sistema con el catalogo completo de servicios y acciones."""
    lines: List[str] = [
        "Eres un ORQUESTADOR de consultas para un sistema de gestión. Analiza la consulta y determina:",
        "",
        "SERVICIOS DISPONIBLES:",
    ]
    for index, (category, entry) in enumerate(CATALOG.items(), start=1):
        lines.append(f'{index}. "{category.value}": {entry.description} (tabla {entry.table})')

    lines += ["", "TODOS LOS MÉTODOS DISPONIBLES POR SERVICIO:"]
    for category, entry in CATALOG.items():
        lines += ["", f"{category.name}:"]
        for action in entry.actions:
            lines.append(f"- {action.value} ({describe_action(action, entry)})")

    categories = " | ".join(f'"{c.value}"' for c in Category)
    lines += [
        "",
        "REGLAS PARA parametros_sugeridos:",
        "- Usa nombres de columna reales cuando los conozcas (ej. \"nombre\", \"estado\", \"fecha\").",
        "- Para filtrar por una entidad relacionada usa \"Tabla.columna\" (ej. \"Empresa.nombre\": \"Gloria\").",
        "- Comparaciones y fechas relativas van dentro del valor (ej. \">=5\", \">= 30 days\").",
        "- Controles opcionales de búsqueda: \"search\", \"orden\" (asc|desc), \"campo_orden\", \"limite\".",
        "",
        "EJEMPLOS:",
        '- "empresas en Lima" -> {"categoria": "empresa", "acciones": ["searchEmpresas"], "parametros_sugeridos": {"distrito": "Lima"}, "explicacion": "Buscar empresas por distrito"}',
        '- "máquinas de la planta Norte" -> {"categoria": "maquina", "acciones": ["searchMaquinas"], "parametros_sugeridos": {"Planta.nombre": "Norte"}, "explicacion": "Buscar máquinas por planta"}',
        '- "lista de usuarios" -> {"categoria": "user", "acciones": ["listUsers"], "parametros_sugeridos": {}, "explicacion": "Listar usuarios"}',
        "",
        "IMPORTANTE: Responde SOLO con JSON válido, sin markdown, sin texto adicional.",
        "",
        "RESPONDE EXCLUSIVAMENTE en formato JSON:",
        "{",
        f'  "categoria": {categories},',
        '  "acciones": ["accion_especifica"],',
        '  "parametros_sugeridos": { "parametro": "valor" },',
        '  "explicacion": "Explicación breve"',
        "}",
    ]
    return "\n".join(lines)


SYSTEM_PROMPT = build_system_prompt()


def build_user_prompt(query: str) -> str:
    return f"Consulta del usuario: {query}"


# Texto plano para /gemini y /openai
TEXT_ASSISTANT_PROMPT = (
    "Eres un asistente de gestión empresarial. Responde en español, de forma breve y clara."
)
