"""Process-wide defaults shared by every export.

The active :class:`Configuration` is read-only once set up: :func:`configure` never mutates it, it swaps in an
evolved copy, so jobs already holding a reference keep seeing consistent values."""
import tempfile
from typing import Any, Dict, Optional

from attr import Factory, attrib, attrs, evolve

from .errors import ConfigurationError
from .formats import StyleDict


def default_style_config() -> Dict[str, StyleDict]:
    return {
        'header': StyleDict({
            'bg_color': '4472C4',
            'fg_color': 'FFFFFF',
            'bold': True,
            'border': {'style': 'thin', 'color': '000000'},
        }),
        'cell': StyleDict({
            'border': {'style': 'thin', 'color': 'CCCCCC'},
        }),
    }


def _positive(instance, attribute, value):
    if value < 1:
        raise ConfigurationError(f'{attribute.name} must be a positive integer, got {value}')


@attrs(auto_attribs=True, frozen=True)
class Configuration(object):
    """Defaults for every report.

    Attributes:
        default_styles: Styles with keys ``header`` and ``cell`` every report style is cascaded over
        date_format: strftime pattern for the timestamp in generated filenames
        streaming_threshold: Collection size at which batched iteration kicks in
        batch_size: Records fetched per round-trip when iterating in batches
        temp_directory: Where the workbook is assembled, system temp directory if None
        cell_date_format: Excel number format applied to date and datetime cells
    """
    default_styles: Dict[str, StyleDict] = Factory(default_style_config)
    date_format: str = '%Y-%m-%d'
    streaming_threshold: int = attrib(default=1000, validator=_positive)
    batch_size: int = attrib(default=1000, validator=_positive)
    temp_directory: Optional[str] = attrib(default=None)
    cell_date_format: str = 'yyyy-mm-dd'

    @property
    def resolved_temp_directory(self) -> str:
        return self.temp_directory or tempfile.gettempdir()

    @property
    def header_style(self) -> StyleDict:
        return StyleDict(self.default_styles.get('header') or {})

    @property
    def cell_style(self) -> StyleDict:
        return StyleDict(self.default_styles.get('cell') or {})


_configuration = Configuration()


def config() -> Configuration:
    """Return the active :class:`Configuration`."""
    return _configuration


def configure(**changes: Any) -> Configuration:
    """Replace the active configuration with a copy that has `changes` applied.

    Examples:
        >>> configure(streaming_threshold=500).streaming_threshold
        500
        >>> _ = reset_config()
    """
    global _configuration
    _configuration = evolve(_configuration, **changes)
    return _configuration


def reset_config() -> Configuration:
    """Restore the built-in defaults."""
    global _configuration
    _configuration = Configuration()
    return _configuration
