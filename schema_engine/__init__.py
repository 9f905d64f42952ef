"""
Schema Engine

Schema model plus the deterministic heuristics that operate on it:
column type inference, table templates, DDL parsing / SQL export and
automatic categorization.
"""

from schema_engine.model import Category, Column, ForeignKey, Schema, Table
from schema_engine.type_inferencer import ColumnTypeInferencer, infer_type
from schema_engine.template_library import TableTemplateLibrary, get_template_library
from schema_engine.ddl_parser import DDLParser
from schema_engine.sql_exporter import SQLExporter, export_sql
from schema_engine.auto_categorizer import AutoCategorizer, CategorizationResult

__all__ = [
    'Category',
    'Column',
    'ForeignKey',
    'Schema',
    'Table',
    'ColumnTypeInferencer',
    'infer_type',
    'TableTemplateLibrary',
    'get_template_library',
    'DDLParser',
    'SQLExporter',
    'export_sql',
    'AutoCategorizer',
    'CategorizationResult',
]
