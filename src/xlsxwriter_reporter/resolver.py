import inspect
from typing import Any, Callable, Mapping, Optional

from attr import Factory, attrs

from .errors import AttributeNotFoundError
from .utils import accepts_no_arguments

_MISSING = object()


def _is_accessor(value) -> bool:
    if inspect.ismethod(value) or inspect.isbuiltin(value):
        return True
    return callable(value) and not inspect.isclass(value) and accepts_no_arguments(value)


@attrs(auto_attribs=True, frozen=True)
class AttributeResolver(object):
    """Reads the value of a column from a record.

    The first of these that applies wins:

    * a computed column registered under the attribute name, called with the record;
    * an attribute of the record, called if it is a method or another callable taking no arguments;
    * a key of the record.

    Mappings skip the attribute step, otherwise a column named ``items`` or ``keys`` would read dict methods.
    A record with none of these gives ``None``, or raises :class:`AttributeNotFoundError` when `strict`.

    Examples:
        >>> resolver = AttributeResolver({'label': lambda record: f"#{record['id']}"})
        >>> resolver.resolve({'id': 1}, 'label'), resolver.resolve({'id': 1}, 'id'), resolver.resolve({}, 'id')
        ('#1', 1, None)
    """
    columns: Mapping[str, Callable[[Any], Any]] = Factory(dict)
    strict: bool = False
    report_name: Optional[str] = None

    def resolve(self, record, attribute_name: str):
        compute = self.columns.get(attribute_name)
        if compute is not None:
            return compute(record)

        if not isinstance(record, Mapping):
            value = getattr(record, attribute_name, _MISSING)
            if value is not _MISSING:
                return value() if _is_accessor(value) else value

        value = self._lookup(record, attribute_name)
        if value is _MISSING:
            if self.strict:
                raise AttributeNotFoundError(
                    f'Record has no attribute or key {attribute_name!r}',
                    report_name=self.report_name,
                    attribute=attribute_name,
                    record=record,
                )
            return None
        return value

    @staticmethod
    def _lookup(record, key):
        try:
            return record[key]
        except (KeyError, IndexError, TypeError):
            return _MISSING

    def resolve_row(self, record, attribute_names):
        return [self.resolve(record, name) for name in attribute_names]
