# agente_gateway/modules/gateway/catalog.py

from enum import Enum
from typing import Dict, FrozenSet, List, NamedTuple, Optional, Sequence


class Category(str, Enum):
    USER = "user"
    EMPRESA = "empresa"
    PLANTA = "planta"
    MAQUINA = "maquina"
    ENCARGADO = "encargado"
    REPORTE_SERVICIO = "reporte_servicio"
    REPORTE_VISITA = "reporte_visita"
    CONFIGURACION = "configuracion"


class ActionId(str, Enum):
    # User
    SEARCH_USERS = "searchUsers"
    LIST_USERS = "listUsers"
    GET_USER_BY_ID = "getUserById"
    CREATE_USER = "createUser"
    UPDATE_USER = "updateUser"
    DELETE_USER = "deleteUser"
    VALIDATE_LOGIN = "validateLogin"
    RESET_PASSWORD = "resetPassword"
    # Empresa
    SEARCH_EMPRESAS = "searchEmpresas"
    LIST_EMPRESAS = "listEmpresas"
    GET_EMPRESA_BY_ID = "getEmpresaById"
    CREATE_EMPRESA = "createEmpresa"
    UPDATE_EMPRESA = "updateEmpresa"
    DELETE_EMPRESA = "deleteEmpresa"
    # Planta
    SEARCH_PLANTAS = "searchPlantas"
    LIST_PLANTAS = "listPlantas"
    GET_PLANTA_BY_ID = "getPlantaById"
    CREATE_PLANTA = "createPlanta"
    UPDATE_PLANTA = "updatePlanta"
    DELETE_PLANTA = "deletePlanta"
    # Maquina
    SEARCH_MAQUINAS = "searchMaquinas"
    LIST_MAQUINAS = "listMaquinas"
    GET_MAQUINA_BY_ID = "getMaquinaById"
    CREATE_MAQUINA = "createMaquina"
    UPDATE_MAQUINA = "updateMaquina"
    DELETE_MAQUINA = "deleteMaquina"
    # Encargado
    SEARCH_ENCARGADOS = "searchEncargados"
    LIST_ENCARGADOS = "listEncargados"
    GET_ENCARGADO_BY_ID = "getEncargadoById"
    CREATE_ENCARGADO = "createEncargado"
    UPDATE_ENCARGADO = "updateEncargado"
    DELETE_ENCARGADO = "deleteEncargado"
    VALIDATE_LOGIN_ENCARGADO = "validateLoginEncargado"
    RESET_PASSWORD_ENCARGADO = "resetPasswordEncargado"
    # Reporte de servicio
    SEARCH_REPORTE_SERVICIO = "searchReporteServicio"
    LIST_REPORTE_SERVICIO = "listReporteServicio"
    GET_REPORTE_SERVICIO_BY_ID = "getReporteServicioById"
    CREATE_REPORTE_SERVICIO = "createReporteServicio"
    UPDATE_REPORTE_SERVICIO = "updateReporteServicio"
    DELETE_REPORTE_SERVICIO = "deleteReporteServicio"
    # Reporte de visita
    SEARCH_REPORTE_VISITA = "searchReporteVisita"
    LIST_REPORTE_VISITA = "listReporteVisita"
    GET_REPORTE_VISITA_BY_ID = "getReporteVisitaById"
    CREATE_REPORTE_VISITA = "createReporteVisita"
    UPDATE_REPORTE_VISITA = "updateReporteVisita"
    DELETE_REPORTE_VISITA = "deleteReporteVisita"
    # Configuracion
    GET_CONFIG = "getConfig"
    LIST_CONFIGS = "listConfigs"
    CREATE_CONFIG = "createConfig"
    UPDATE_CONFIG = "updateConfig"
    DELETE_CONFIG = "deleteConfig"


class CategoryEntry(NamedTuple):
    table: str
    description: str
    actions: Sequence[ActionId]
    filter_hint: str = ""


A = ActionId

CATALOG: Dict[Category, CategoryEntry] = {
    Category.USER: CategoryEntry(
        table="Usuarios",
        description="Gestión de usuarios",
        actions=(A.SEARCH_USERS, A.LIST_USERS, A.GET_USER_BY_ID, A.CREATE_USER, A.UPDATE_USER,
                 A.DELETE_USER, A.VALIDATE_LOGIN, A.RESET_PASSWORD),
        filter_hint="id, nombres, email, rol, estado",
    ),
    Category.EMPRESA: CategoryEntry(
        table="Empresa",
        description="Gestión de empresas",
        actions=(A.SEARCH_EMPRESAS, A.LIST_EMPRESAS, A.GET_EMPRESA_BY_ID, A.CREATE_EMPRESA,
                 A.UPDATE_EMPRESA, A.DELETE_EMPRESA),
        filter_hint="id, nombre, ruc, distrito, estado",
    ),
    Category.PLANTA: CategoryEntry(
        table="Planta",
        description="Gestión de plantas (instalaciones/ubicaciones de empresas)",
        actions=(A.SEARCH_PLANTAS, A.LIST_PLANTAS, A.GET_PLANTA_BY_ID, A.CREATE_PLANTA,
                 A.UPDATE_PLANTA, A.DELETE_PLANTA),
        filter_hint="id, nombre, id_empresa, nombreempresa, dirección, estado",
    ),
    Category.MAQUINA: CategoryEntry(
        table="Maquinas",
        description="Gestión de máquinas (equipos en plantas)",
        actions=(A.SEARCH_MAQUINAS, A.LIST_MAQUINAS, A.GET_MAQUINA_BY_ID, A.CREATE_MAQUINA,
                 A.UPDATE_MAQUINA, A.DELETE_MAQUINA),
        filter_hint="id, marca, línea, serie, modelo, id_planta, id_empresa, nombreplanta, nombreempresa, estado",
    ),
    Category.ENCARGADO: CategoryEntry(
        table="Encargado",
        description="Gestión de encargados (personas a cargo de plantas/máquinas)",
        actions=(A.SEARCH_ENCARGADOS, A.LIST_ENCARGADOS, A.GET_ENCARGADO_BY_ID, A.CREATE_ENCARGADO,
                 A.UPDATE_ENCARGADO, A.DELETE_ENCARGADO, A.VALIDATE_LOGIN_ENCARGADO,
                 A.RESET_PASSWORD_ENCARGADO),
        filter_hint="id, nombre, apellido, dni, email, cargo, nombreEmpresa, nombrePlanta",
    ),
    Category.REPORTE_SERVICIO: CategoryEntry(
        table="Reporte_Servicio",
        description="Reportes de servicio técnico",
        actions=(A.SEARCH_REPORTE_SERVICIO, A.LIST_REPORTE_SERVICIO, A.GET_REPORTE_SERVICIO_BY_ID,
                 A.CREATE_REPORTE_SERVICIO, A.UPDATE_REPORTE_SERVICIO, A.DELETE_REPORTE_SERVICIO),
        filter_hint="id, codigo_reporte, nombre_usuario, nombre_empresa, nombre_planta, serie_maquina, marca_maquina, linea_maquina, modelo_maquina, fecha, estado",
    ),
    Category.REPORTE_VISITA: CategoryEntry(
        table="Reporte_Visita",
        description="Reportes de visitas técnicas",
        actions=(A.SEARCH_REPORTE_VISITA, A.LIST_REPORTE_VISITA, A.GET_REPORTE_VISITA_BY_ID,
                 A.CREATE_REPORTE_VISITA, A.UPDATE_REPORTE_VISITA, A.DELETE_REPORTE_VISITA),
        filter_hint="id, cliente, nombre_encargado, nombre_operador, planta, empresa, fecha",
    ),
    Category.CONFIGURACION: CategoryEntry(
        table="Configuracion",
        description="Configuraciones del sistema",
        actions=(A.GET_CONFIG, A.LIST_CONFIGS, A.CREATE_CONFIG, A.UPDATE_CONFIG, A.DELETE_CONFIG),
    ),
}

# Solo lectura: se ejecutan sin confirmacion
ACCIONES_AUTOMATICAS: FrozenSet[ActionId] = frozenset(
    [a for a in ActionId if a.value.startswith(("search", "list")) or (a.value.startswith("get") and a.value.endswith("ById"))]
    + [A.GET_CONFIG, A.LIST_CONFIGS]
)

# Acciones de busqueda que reciben filtros resueltos
SEARCH_ACTIONS: FrozenSet[ActionId] = frozenset(a for a in ActionId if a.value.startswith("search"))


def parse_category(value: Optional[str]) -> Optional[Category]:
    if not value:
        return None
    normalized = str(value).strip().lower()
    for category in Category:
        if category.value == normalized or category.name.lower() == normalized:
            return category
    return None


def parse_action(category: Category, value: str) -> Optional[ActionId]:
    for action in CATALOG[category].actions:
        if action.value == value:
            return action
    return None


def table_for(category: Category) -> str:
    return CATALOG[category].table


def actions_for(category: Category) -> List[ActionId]:
    return list(CATALOG[category].actions)


def is_auto_executable(actions: Sequence[str | ActionId]) -> bool:
    """True only when every action is read-only."""
    if not actions:
        return False
    allowed = {a.value for a in ACCIONES_AUTOMATICAS}
    return all((a.value if isinstance(a, ActionId) else a) in allowed for a in actions)
