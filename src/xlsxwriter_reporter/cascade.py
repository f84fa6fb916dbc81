from typing import Dict, Mapping, Optional

from attr import Factory, attrib, attrs

from .config import Configuration, config
from .formats import StyleDict, deep_merge

HEADER_TARGET = 'header'


@attrs(auto_attribs=True)
class StyleCascade(object):
    """Resolves the effective style of the header row and of every column.

    A report's own `rules` are deep merged over the configured defaults: ``header`` over the default header
    style, a column's rule over the default cell style. Results only depend on the defaults and the rule of
    the requested target, so they are memoized.

    Attributes:
        rules: Style rules of a report keyed by target, either ``header``, a column name or a fragment name
        configuration: Source of default styles, the active configuration if not given
    """
    rules: Mapping[str, Mapping] = Factory(dict)
    configuration: Optional[Configuration] = attrib(default=None)
    _column_cache: Dict[str, StyleDict] = attrib(init=False, factory=dict, repr=False)

    @property
    def _defaults(self) -> Configuration:
        return self.configuration or config()

    def rule(self, target: str) -> Mapping:
        return self.rules.get(target) or {}

    def header_style(self) -> StyleDict:
        return deep_merge(self._defaults.header_style, self.rule(HEADER_TARGET))

    def column_style(self, column_name: str) -> StyleDict:
        if column_name not in self._column_cache:
            self._column_cache[column_name] = deep_merge(self._defaults.cell_style, self.rule(column_name))
        return deep_merge(self._column_cache[column_name], {})

    def merge_named(self, *style_names: str) -> StyleDict:
        """Fold the rules named `style_names` left to right, later names winning. Unknown names contribute
        nothing."""
        merged = StyleDict()
        for style_name in style_names:
            merged = deep_merge(merged, self.rule(style_name))
        return merged
