"""Tabular Excel export for XlsxWriter: describe a report once with a `ReportDefinition` (ordered attributes,
style rules keyed by ``header`` or column name, computed columns and hooks), then hand any collection of records
to an `ExportJob`, which reads every attribute from every record, cascades the report styles over the configured
defaults and streams large or lazily fetched collections in batches while reporting progress."""

from . import cascade, config, definition, errors, formats, report, resolver, sink, streaming, utils

from .cascade import StyleCascade
from .config import Configuration, configure, reset_config
from .definition import AttributeSpec, ReportDefinition
from .errors import AttributeNotFoundError, ConfigurationError, ReporterError
from .formats import StyleDict, StylesNamespace
from .report import CONTENT_TYPE, ExportJob
from .resolver import AttributeResolver
from .streaming import OpaqueIterable, PaginatedSource, ProgressInfo, SizedIterable, StreamingIterator

__all__ = [
    'cascade', 'config', 'definition', 'errors', 'formats', 'report', 'resolver', 'sink', 'streaming', 'utils',
    'StyleCascade', 'Configuration', 'configure', 'reset_config', 'AttributeSpec', 'ReportDefinition',
    'AttributeNotFoundError', 'ConfigurationError', 'ReporterError', 'StyleDict', 'StylesNamespace',
    'CONTENT_TYPE', 'ExportJob', 'AttributeResolver', 'OpaqueIterable', 'PaginatedSource', 'ProgressInfo',
    'SizedIterable', 'StreamingIterator',
]
