import re
from collections import defaultdict
from typing import Any, Dict, Mapping

from attr import Factory, attrs
from xlsxwriter import Workbook as XlsxWriterWorkbook
from xlsxwriter.format import Format

STYLE_PROPERTIES = (
    'bg_color', 'fg_color', 'bold', 'italic', 'alignment', 'border', 'font_size', 'font_name', 'num_format'
)

BORDER_STYLES = {
    'none': 0,
    'thin': 1,
    'medium': 2,
    'dashed': 3,
    'dotted': 4,
    'thick': 5,
    'double': 6,
    'hair': 7,
    'medium_dashed': 8,
    'dash_dot': 9,
    'medium_dash_dot': 10,
    'dash_dot_dot': 11,
    'medium_dash_dot_dot': 12,
    'slant_dash_dot': 13,
}

BORDER_EDGES = ('left', 'right', 'top', 'bottom')

VERTICAL_ALIGNMENTS = {
    'top': 'top',
    'center': 'vcenter',
    'vcenter': 'vcenter',
    'bottom': 'bottom',
    'justify': 'vjustify',
    'distributed': 'vdistributed',
}

_HEX_COLOR = re.compile(r'^(?:[0-9A-Fa-f]{2})?([0-9A-Fa-f]{6})$')


def _freeze(value):
    if isinstance(value, Mapping):
        return tuple(sorted((key, _freeze(item)) for key, item in value.items()))
    if isinstance(value, (list, tuple, set)):
        return tuple(_freeze(item) for item in value)
    return value


def deep_merge(base: Mapping, override: Mapping) -> 'StyleDict':
    """Merge `override` into a copy of `base`. Nested mappings are merged recursively, anything else in
    `override` replaces what `base` has, even a mapping. Nested mappings of the result are copies, so neither
    argument is modified, then or later through the result.

    Examples:
        >>> deep_merge({'bold': True}, {'bold': False})
        {'bold': False}
        >>> deep_merge({'border': {'style': 'thin', 'color': '000000'}}, {'border': {'color': 'FF0000'}})
        {'border': {'style': 'thin', 'color': 'FF0000'}}
    """
    result = StyleDict()
    for key, value in base.items():
        result[key] = deep_merge(value, {}) if isinstance(value, Mapping) else value
    for key, value in override.items():
        if isinstance(value, Mapping):
            current = result.get(key)
            result[key] = deep_merge(current if isinstance(current, Mapping) else {}, value)
        else:
            result[key] = value
    return result


class StyleDict(Dict[str, Any]):
    """An engine-neutral style. `|` deep merges with the right operand winning, and it is hashable so
    that styles can be compared and deduplicated.

    Examples:
        >>> S = StyleDict
        >>> S({'bold': True}) | {'italic': True} == S({'bold': True, 'italic': True})
        True
        >>> {'bold': True} | S({'bold': False})
        {'bold': False}
    """

    def __or__(self, other):
        return deep_merge(self, other)

    def __ror__(self, other):
        return deep_merge(other, self)

    def __hash__(self):
        return hash(_freeze(self))


class FormatDict(Dict[str, Any]):
    """Flat XlsxWriter format properties, hashable so that each distinct format is added to a workbook once."""

    def __or__(self, other):
        return FormatDict({
            **self,
            **other
        })

    def __ror__(self, other):
        return FormatDict({
            **other,
            **self
        })

    def __hash__(self):
        return hash(_freeze(self))


def color(value) -> str:
    """XlsxWriter wants ``#RRGGBB``; bare hex and ARGB are accepted too, named colors pass through."""
    match = _HEX_COLOR.match(str(value))
    if match:
        return f'#{match.group(1).upper()}'
    return value


def _border_index(value) -> int:
    if isinstance(value, bool):
        return int(value)
    if isinstance(value, int):
        return value
    try:
        return BORDER_STYLES[str(value)]
    except KeyError:
        raise ValueError(f'Unknown border style {value!r}, valid values are {sorted(BORDER_STYLES)}') from None


def _translate_border(border) -> FormatDict:
    if not isinstance(border, Mapping):
        return FormatDict({'border': _border_index(border)})

    result = FormatDict()
    edges = border.get('edges')
    index = _border_index(border.get('style', 'thin'))
    if edges is None:
        result['border'] = index
        if 'color' in border:
            result['border_color'] = color(border['color'])
    else:
        for edge in edges:
            if edge not in BORDER_EDGES:
                raise ValueError(f'Unknown border edge {edge!r}, valid values are {BORDER_EDGES}')
            result[edge] = index
            if 'color' in border:
                result[f'{edge}_color'] = color(border['color'])
    return result


def _translate_alignment(alignment) -> FormatDict:
    if not isinstance(alignment, Mapping):
        return FormatDict({'align': alignment})

    result = FormatDict()
    if 'horizontal' in alignment:
        result['align'] = alignment['horizontal']
    if 'vertical' in alignment:
        vertical = alignment['vertical']
        result['valign'] = VERTICAL_ALIGNMENTS.get(vertical, vertical)
    if 'wrap_text' in alignment:
        result['text_wrap'] = alignment['wrap_text']
    if 'indent' in alignment:
        result['indent'] = alignment['indent']
    if 'text_rotation' in alignment:
        result['rotation'] = alignment['text_rotation']
    return result


def to_format_dict(style: Mapping) -> FormatDict:
    """Translate an engine-neutral `style` into XlsxWriter format properties.

    Only keys present in `style` are translated, so an explicit ``'bold': False`` survives while a missing
    ``bold`` stays missing. Unknown keys are ignored.

    Examples:
        >>> to_format_dict({'fg_color': 'FFFFFF', 'bold': False, 'border': {'style': 'thin', 'color': '000000'}})
        {'font_color': '#FFFFFF', 'bold': False, 'border': 1, 'border_color': '#000000'}
    """
    result = FormatDict()
    if 'bg_color' in style:
        result['bg_color'] = color(style['bg_color'])
    if 'fg_color' in style:
        result['font_color'] = color(style['fg_color'])
    if 'bold' in style:
        result['bold'] = style['bold']
    if 'italic' in style:
        result['italic'] = style['italic']
    if 'alignment' in style:
        result |= _translate_alignment(style['alignment'])
    if 'border' in style:
        result |= _translate_border(style['border'])
    if 'font_size' in style:
        result['font_size'] = style['font_size']
    if 'font_name' in style:
        result['font_name'] = style['font_name']
    if 'num_format' in style:
        result['num_format'] = style['num_format']
    return result


@attrs(auto_attribs=True)
class FormatHandler(object):
    """This object is used to handle adding new formats when necessary. Only one should be used per Workbook."""
    target: XlsxWriterWorkbook
    _memoized: Dict[FormatDict, Format] = Factory(dict)

    def verify_format(self, format_: FormatDict) -> Format:
        if format_ not in self._memoized:
            self._memoized[format_] = self.target.add_format(dict(format_))
        return self._memoized[format_]

    @property
    def format_count(self) -> int:
        return len(self._memoized)


def ensure_style_uniqueness(class_):
    """A class decorator used to verify that all styles in the decorated class are unique and use StyleDict."""
    hashes = defaultdict(list)
    for attr in dir(class_):
        if not attr.startswith('_'):
            attr_value = getattr(class_, attr)
            if not isinstance(attr_value, StyleDict):
                raise TypeError(f'Style {attr_value} must be a StyleDict')
            hashes[hash(attr_value)].append(attr)

    for styles in hashes.values():
        if len(styles) > 1:
            raise ValueError(f'{styles} are the same')

    return class_


@ensure_style_uniqueness
class StylesNamespace(object):
    """Reusable style fragments, meant to be combined with ``|`` when declaring report styles."""
    base = StyleDict({})

    bold = base | {'bold': True}
    italic = base | {'italic': True}

    left = base | {'alignment': {'horizontal': 'left'}}
    center = base | {'alignment': {'horizontal': 'center', 'vertical': 'center'}}
    right = base | {'alignment': {'horizontal': 'right'}}
    wrapped = base | {'alignment': {'wrap_text': True}}

    thin_border = base | {'border': {'style': 'thin'}}
    thick_border = base | {'border': {'style': 'thick'}}
    bottom_border = base | {'border': {'style': 'thin', 'edges': ['bottom']}}

    highlight = base | {'bg_color': 'FFFF00'}
    muted = base | {'fg_color': '808080'}

    integer = base | {'num_format': '0'}
    decimal = base | {'num_format': '0.00'}
    percent = base | {'num_format': '0.0%'}
    currency = base | {'num_format': '#,##0.00'}
    date = base | {'num_format': 'yyyy-mm-dd'}
    datetime = base | {'num_format': 'yyyy-mm-dd hh:mm:ss'}

    centered_bold = center | bold
