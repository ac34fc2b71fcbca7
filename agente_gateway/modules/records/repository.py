# agente_gateway/modules/records/repository.py

from typing import Dict, Type

from supabase import AsyncClient

from agente_gateway.core.repository import BaseRepository
from agente_gateway.modules.gateway.catalog import Category
from agente_gateway.modules.records.tables import TABLE_SPECS


class UsuarioRepository(BaseRepository):
    table_name = TABLE_SPECS[Category.USER].table


class EmpresaRepository(BaseRepository):
    table_name = TABLE_SPECS[Category.EMPRESA].table
    default_order = TABLE_SPECS[Category.EMPRESA].default_order


class PlantaRepository(BaseRepository):
    table_name = TABLE_SPECS[Category.PLANTA].table
    default_order = TABLE_SPECS[Category.PLANTA].default_order


class MaquinaRepository(BaseRepository):
    table_name = TABLE_SPECS[Category.MAQUINA].table


class EncargadoRepository(BaseRepository):
    table_name = TABLE_SPECS[Category.ENCARGADO].table


class ReporteServicioRepository(BaseRepository):
    table_name = TABLE_SPECS[Category.REPORTE_SERVICIO].table
    default_order = TABLE_SPECS[Category.REPORTE_SERVICIO].default_order


class ReporteVisitaRepository(BaseRepository):
    table_name = TABLE_SPECS[Category.REPORTE_VISITA].table
    default_order = TABLE_SPECS[Category.REPORTE_VISITA].default_order


class ConfiguracionRepository(BaseRepository):
    table_name = TABLE_SPECS[Category.CONFIGURACION].table


REPOSITORIES: Dict[Category, Type[BaseRepository]] = {
    Category.USER: UsuarioRepository,
    Category.EMPRESA: EmpresaRepository,
    Category.PLANTA: PlantaRepository,
    Category.MAQUINA: MaquinaRepository,
    Category.ENCARGADO: EncargadoRepository,
    Category.REPORTE_SERVICIO: ReporteServicioRepository,
    Category.REPORTE_VISITA: ReporteVisitaRepository,
    Category.CONFIGURACION: ConfiguracionRepository,
}


def get_repository(category: Category, client: AsyncClient) -> BaseRepository:
    return REPOSITORIES[category](client)
