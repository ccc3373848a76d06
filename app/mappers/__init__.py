"""
app/mappers package marker.
"""

from app.mappers.template_mapper import ColumnDefinition, ColumnTransform, TemplateMapper

__all__ = [
    "ColumnDefinition",
    "ColumnTransform",
    "TemplateMapper",
]
