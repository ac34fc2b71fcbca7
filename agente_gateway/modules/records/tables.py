# agente_gateway/modules/records/tables.py

from typing import Dict, NamedTuple, Optional, Sequence, Tuple

from agente_gateway.modules.gateway.catalog import Category


class TableSpec(NamedTuple):
    table: str
    singular: str
    search_fields: Sequence[str] = ()
    default_order: Optional[Tuple[str, bool]] = None  # (columna, desc)
    login_field: Optional[str] = None


TABLE_SPECS: Dict[Category, TableSpec] = {
    Category.USER: TableSpec(
        table="Usuarios",
        singular="Usuario",
        search_fields=("nombres", "email", "usuario", "rol", "dni"),
        login_field="usuario",
    ),
    Category.EMPRESA: TableSpec(
        table="Empresa",
        singular="Empresa",
        search_fields=("nombre", "ruc", "direccion", "distrito"),
        default_order=("nombre", False),
    ),
    Category.PLANTA: TableSpec(
        table="Planta",
        singular="Planta",
        search_fields=("nombre", "nombreempresa", "direccion"),
        default_order=("nombre", False),
    ),
    Category.MAQUINA: TableSpec(
        table="Maquinas",
        singular="Máquina",
        search_fields=("marca", "linea", "serie", "modelo", "nombreplanta", "nombreempresa"),
    ),
    Category.ENCARGADO: TableSpec(
        table="Encargado",
        singular="Encargado",
        search_fields=("nombre", "apellido", "dni", "email", "cargo", "nombreEmpresa", "nombrePlanta"),
        login_field="email",
    ),
    Category.REPORTE_SERVICIO: TableSpec(
        table="Reporte_Servicio",
        singular="Reporte de servicio",
        search_fields=(
            "codigo_reporte", "serie_maquina", "linea_maquina", "marca_maquina", "modelo_maquina",
            "nombre_planta", "nombre_empresa", "nombre_usuario", "problemas_encontrados",
            "acciones_realizadas", "observaciones",
        ),
        default_order=("fecha", True),
    ),
    Category.REPORTE_VISITA: TableSpec(
        table="Reporte_Visita",
        singular="Reporte de visita",
        search_fields=("cliente", "nombre_encargado", "email_encargado", "nombre_operador", "planta", "empresa"),
        default_order=("fecha", True),
    ),
    Category.CONFIGURACION: TableSpec(
        table="Configuracion",
        singular="Configuración",
    ),
}
