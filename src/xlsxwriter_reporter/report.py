import logging
import os
import tempfile
from datetime import datetime
from email.utils import formatdate
from io import BytesIO
from typing import Any, Callable, Dict, List, Optional

from .cascade import StyleCascade
from .config import Configuration, config
from .definition import ReportDefinition
from .errors import ConfigurationError
from .resolver import AttributeResolver
from .sink import WorkbookSink
from .streaming import ProgressInfo, StreamingIterator
from .utils import column_letter, humanize, parameterize, underscore

logger = logging.getLogger(__name__)

CONTENT_TYPE = 'application/vnd.openxmlformats-officedocument.spreadsheetml.sheet'

DEFAULT_WORKSHEET_NAME = 'Report'


class ExportJob(object):
    """
    A single export of `collection` as described by `definition`.

    The workbook is rendered at most once, on the first read of :func:`render`, :func:`to_xlsx`,
    :func:`stream` or :func:`save_to`; later reads return the same bytes.

    Parameters:
        definition: Columns, styles, thresholds and hooks of the report
        collection: Records to export, referenced rather than copied; it must not change during the export
        worksheet_name: Name of the worksheet, derived from the definition name if not given
        progress_callback: Called with a :class:`ProgressInfo` for every record written
        configuration: Defaults to use, the active configuration at construction time if not given
    """

    def __init__(
            self,
            definition: ReportDefinition,
            collection: Any,
            worksheet_name: Optional[str] = None,
            progress_callback: Optional[Callable[[ProgressInfo], Any]] = None,
            configuration: Optional[Configuration] = None,
    ):
        self.definition = definition
        self.collection = collection
        self.configuration = configuration or config()
        self.worksheet_name = worksheet_name or self._default_worksheet_name()
        self.progress_callback = progress_callback

        self.resolver = AttributeResolver(definition.columns, definition.strict, definition.name)
        self.cascade = StyleCascade(definition.styles, self.configuration)
        self.iterator = StreamingIterator(
            collection,
            threshold=definition.streaming_threshold or self.configuration.streaming_threshold,
            batch_size=definition.batch_size or self.configuration.batch_size,
            progress_callback=progress_callback,
        )

        self._binary: Optional[bytes] = None
        self._rows: Optional[List[List[Any]]] = None

    def _default_worksheet_name(self) -> str:
        if self.definition.name:
            return humanize(underscore(self.definition.name))
        return DEFAULT_WORKSHEET_NAME

    @property
    def attributes(self):
        return self.definition.attributes

    @property
    def rendered(self) -> bool:
        return self._binary is not None

    def collection_size(self) -> int:
        return self.iterator.size()

    def should_stream(self) -> bool:
        return self.iterator.should_stream()

    def render(self) -> bytes:
        """Build the workbook, or return the one already built."""
        if self._binary is None:
            self._render()
        return self._binary

    def to_xlsx(self) -> bytes:
        return self.render()

    def stream(self) -> BytesIO:
        """A fresh binary stream over the rendered workbook."""
        return BytesIO(self.render())

    def save_to(self, path):
        with open(path, 'wb') as out:
            out.write(self.render())

    def filename(self, now: Optional[datetime] = None) -> str:
        """``{worksheet-name}_report_{timestamp}.xlsx``, with the timestamp formatted by the configured date
        format and its hyphens replaced by underscores."""
        timestamp = (now or datetime.now()).strftime(self.configuration.date_format).replace('-', '_')
        return f'{parameterize(self.worksheet_name)}_report_{timestamp}.xlsx'

    def headers(self, filename: Optional[str] = None, disposition: str = 'attachment') -> Dict[str, str]:
        """HTTP response headers for delivering the rendered workbook as a download."""
        return {
            'Content-Type': CONTENT_TYPE,
            'Content-Disposition': f'{disposition}; filename="{filename or self.filename()}"',
            'Content-Transfer-Encoding': 'binary',
            'Last-Modified': formatdate(usegmt=True),
        }

    def rows(self) -> List[List[Any]]:
        """Cell values of every record, without rendering a workbook."""
        if self._rows is None:
            names = self.definition.attribute_names
            self._rows = [self.resolver.resolve_row(record, names) for record in self.iterator.stream()]
        return self._rows

    def to_dict(self) -> Dict[str, Any]:
        return {
            'worksheet_name': self.worksheet_name,
            'attributes': [{'name': spec.name, 'header': spec.header} for spec in self.attributes],
            'rows': self.rows(),
            'collection_size': self.collection_size(),
            'used_streaming': self.should_stream(),
        }

    def _validate(self):
        if not self.definition.attributes:
            raise ConfigurationError(
                'No attributes defined. Declare attributes with ReportDefinition.with_attributes '
                'to define columns.',
                report_name=self.definition.name,
            )

    def _render(self):
        self._validate()
        self._call_hook('before_render')

        streaming = self.should_stream()
        logger.debug('Rendering %r: %d records, streaming=%s', self.worksheet_name, self.collection_size(), streaming)

        directory = self.configuration.resolved_temp_directory
        fd, path = tempfile.mkstemp(prefix=f'{parameterize(self.worksheet_name, "_")}_', suffix='.xlsx',
                                    dir=directory)
        os.close(fd)
        try:
            sink = WorkbookSink.from_path(
                path,
                constant_memory=streaming,
                tmpdir=directory,
                date_format=self.configuration.cell_date_format,
            )
            try:
                self._write(sink)
            finally:
                sink.close()

            with open(path, 'rb') as binary:
                result = binary.read()
        finally:
            os.remove(path)

        logger.debug('Rendered %r: %d bytes', self.worksheet_name, len(result))
        self._binary = result
        self._call_hook('after_render')

    def _write(self, sink: WorkbookSink):
        names = self.definition.attribute_names

        sink.add_worksheet(self.worksheet_name)
        header_format = sink.register_style(self.cascade.header_style())
        sink.add_row(self.definition.headers, [header_format] * len(names))
        sink.set_autofilter(f'A1:{column_letter(len(names))}1')

        column_formats = [sink.register_style(self.cascade.column_style(name)) for name in names]
        for record, _progress in self.iterator.stream_with_progress():
            self._call_hook('before_row', record)
            sink.add_row(self.resolver.resolve_row(record, names), column_formats)
            self._call_hook('after_row', record)

    def _call_hook(self, hook_name: str, *args):
        hook = getattr(self.definition, hook_name)
        if hook is not None:
            hook(self, *args)
