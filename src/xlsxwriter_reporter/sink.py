import datetime
from decimal import Decimal
from numbers import Real
from typing import Any, Dict, Optional, Sequence

from attr import attrib, attrs
from xlsxwriter import Workbook
from xlsxwriter.worksheet import Worksheet

from .formats import FormatDict, FormatHandler, to_format_dict

WRITABLE_TYPES = (str, Real, Decimal, datetime.date, datetime.time, datetime.timedelta)


def cell_value(value: Any) -> Any:
    """Values XlsxWriter has no writer for are written as their string form."""
    if value is None or isinstance(value, WRITABLE_TYPES):
        return value
    return str(value)


def date_number_format(value: Any, date_format: str) -> Optional[str]:
    """Excel number format a date or time `value` needs to be displayed as one, None for other values."""
    if isinstance(value, datetime.datetime):
        return f'{date_format} hh:mm:ss'
    if isinstance(value, datetime.date):
        return date_format
    if isinstance(value, (datetime.time, datetime.timedelta)):
        return 'hh:mm:ss'
    return None


@attrs(auto_attribs=True)
class WorkbookSink(object):
    """Writes rows one after another into a single worksheet of an XlsxWriter workbook.

    Styles are registered as engine-neutral mappings and returned as :class:`FormatDict` handles, which are
    turned into workbook formats, once each, when a cell is written with them.

    Attributes:
        wb: Target workbook
        fmt: Format handler bound to `wb`
        date_format: Excel date format added to date cells whose style has no number format
    """
    wb: Workbook
    fmt: FormatHandler
    date_format: str = 'yyyy-mm-dd'
    ws: Optional[Worksheet] = attrib(default=None, init=False)
    row: int = attrib(default=0, init=False)

    @classmethod
    def from_path(cls, path: str, constant_memory: bool = False, tmpdir: Optional[str] = None,
                  date_format: str = 'yyyy-mm-dd') -> 'WorkbookSink':
        """Create a workbook that will be serialized to `path`. In `constant_memory` mode every row is flushed
        to disk as soon as the next one starts."""
        options: Dict[str, Any] = {
            'constant_memory': constant_memory,
            'remove_timezone': True,
            'nan_inf_to_errors': True,
        }
        if tmpdir is not None:
            options['tmpdir'] = tmpdir
        return cls.from_wb(Workbook(path, options), date_format)

    @classmethod
    def from_wb(cls, wb: Workbook, date_format: str = 'yyyy-mm-dd') -> 'WorkbookSink':
        """Bind an existing :class:`Workbook` into a :class:`WorkbookSink`"""
        return cls(wb, FormatHandler(wb), date_format)

    def add_worksheet(self, name: str) -> Worksheet:
        self.ws = self.wb.add_worksheet(name)
        self.row = 0
        return self.ws

    def register_style(self, style) -> Optional[FormatDict]:
        """Translate an engine-neutral `style`; an empty style means no format at all."""
        format_ = to_format_dict(style)
        return format_ or None

    def add_row(self, values: Sequence[Any], formats: Sequence[Optional[FormatDict]]):
        """Write `values` into the next row, each cell with the format at the same position."""
        if self.ws is None:
            raise RuntimeError('add_worksheet must be called before add_row')

        for col, (value, format_) in enumerate(zip(values, formats)):
            self._write(self.row, col, cell_value(value), format_)
        self.row += 1

    def _write(self, row: int, col: int, value: Any, format_: Optional[FormatDict]):
        number_format = date_number_format(value, self.date_format)
        if number_format is not None and (format_ is None or 'num_format' not in format_):
            format_ = (format_ or FormatDict()) | {'num_format': number_format}

        args = row, col, value
        if format_ is not None:
            args += self.fmt.verify_format(format_),
        # Record text is data: no hyperlinks or formulas are inferred from it
        if isinstance(value, str):
            return_code = self.ws.write_string(*args)
        else:
            return_code = self.ws.write(*args)

        if return_code == -2:
            raise ValueError('Write failed because the string is longer than 32k characters')

    def set_autofilter(self, cell_range: str):
        self.ws.autofilter(cell_range)

    def close(self):
        """Serialize the workbook to its target and release its temporary files."""
        self.wb.close()
