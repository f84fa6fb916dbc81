from typing import Any, Callable, Iterable, Mapping, Optional, Tuple, TypeVar, Union

from attr import attrib, attrs, evolve

from .errors import ConfigurationError
from .formats import StyleDict
from .utils import humanize

T = TypeVar('T')

AttributeLike = Union['AttributeSpec', str, Mapping[str, str], Tuple[str, str]]
ComputedColumn = Callable[[Any], Any]

HOOK_NAMES = ('before_render', 'after_render', 'before_row', 'after_row')


@attrs(auto_attribs=True, frozen=True)
class AttributeSpec(object):
    """A column of the report: the `name` used to read the value from a record and the `header` shown on top."""
    name: str = attrib(converter=str)
    header: str = attrib()

    @header.default
    def _default_header(self):
        return humanize(self.name)

    @classmethod
    def coerce(cls, value: AttributeLike) -> 'AttributeSpec':
        """Accept a spec, a bare name, a ``{'name': ..., 'header': ...}`` mapping or a ``(name, header)`` pair."""
        if isinstance(value, cls):
            return value
        if isinstance(value, Mapping):
            return cls(**value)
        if isinstance(value, tuple):
            return cls(*value)
        return cls(value)


def _to_specs(values: Iterable[AttributeLike]) -> Tuple[AttributeSpec, ...]:
    return tuple(AttributeSpec.coerce(value) for value in values)


def _to_styles(values: Mapping[str, Mapping]) -> Mapping[str, StyleDict]:
    return {str(target): StyleDict(rule) for target, rule in values.items()}


def _unique_names(instance, attribute, value):
    seen = set()
    for spec in value:
        if spec.name in seen:
            raise ConfigurationError(
                f'Attribute {spec.name} is declared more than once', report_name=instance.name
            )
        seen.add(spec.name)


def _optional_positive(instance, attribute, value):
    if value is not None and value < 1:
        raise ConfigurationError(
            f'{attribute.name} must be a positive integer, got {value}', report_name=instance.name
        )


def _merge_specs(current: Tuple[AttributeSpec, ...], additions: Iterable[AttributeLike]) -> Tuple[AttributeSpec, ...]:
    """Append `additions` to `current`, replacing in place an entry that is redefined with the same name."""
    result = list(current)
    positions = {spec.name: index for index, spec in enumerate(result)}
    for spec in _to_specs(additions):
        if spec.name in positions:
            result[positions[spec.name]] = spec
        else:
            positions[spec.name] = len(result)
            result.append(spec)
    return tuple(result)


@attrs(auto_attribs=True, frozen=True)
class ReportDefinition(object):
    """Everything that describes a kind of report, built once and shared by all its exports.

    Definitions are immutable. Every ``with_*`` method returns a new definition, which is how a report
    specializes another one: the parent keeps its attributes and styles untouched.

    Examples:
        >>> users = ReportDefinition(name='UserReport').with_attributes('id', 'name')
        >>> admins = users.with_attributes('role').with_style('header', {'bg_color': 'C00000'})
        >>> [spec.name for spec in users.attributes], [spec.name for spec in admins.attributes]
        (['id', 'name'], ['id', 'name', 'role'])

    Attributes:
        name: Name of the report, used for the default worksheet name
        attributes: Ordered columns
        styles: Style rules keyed by ``header``, a column name or a fragment name
        columns: Computed columns, called with the record in place of reading it
        streaming_threshold: Overrides the configured streaming threshold
        batch_size: Overrides the configured batch size
        strict: Raise :class:`AttributeNotFoundError` when a record lacks an attribute
        before_render: Called with the job before anything is written
        after_render: Called with the job once the binary is ready
        before_row: Called with the job and the record before its row is written
        after_row: Called with the job and the record after its row is written
    """
    name: Optional[str] = None
    attributes: Tuple[AttributeSpec, ...] = attrib(default=(), converter=_to_specs, validator=_unique_names)
    styles: Mapping[str, StyleDict] = attrib(factory=dict, converter=_to_styles)
    columns: Mapping[str, ComputedColumn] = attrib(factory=dict, converter=dict)
    streaming_threshold: Optional[int] = attrib(default=None, validator=_optional_positive)
    batch_size: Optional[int] = attrib(default=None, validator=_optional_positive)
    strict: bool = False
    before_render: Optional[Callable] = None
    after_render: Optional[Callable] = None
    before_row: Optional[Callable] = None
    after_row: Optional[Callable] = None

    @property
    def attribute_names(self) -> Tuple[str, ...]:
        return tuple(spec.name for spec in self.attributes)

    @property
    def headers(self) -> Tuple[str, ...]:
        return tuple(spec.header for spec in self.attributes)

    def with_name(self: T, name: str) -> T:
        return evolve(self, name=name)

    def with_attributes(self: T, *attributes: AttributeLike) -> T:
        """Append `attributes`; one that has the name of an existing attribute replaces it in place."""
        return evolve(self, attributes=_merge_specs(self.attributes, attributes))

    def with_attribute(self: T, name: str, header: Optional[str] = None) -> T:
        """Append a single attribute `name`, perhaps with a custom `header`."""
        spec = AttributeSpec(name) if header is None else AttributeSpec(name, header)
        return self.with_attributes(spec)

    def with_column(self: T, name: str, compute: ComputedColumn, header: Optional[str] = None) -> T:
        """Register a computed column `name` whose value is `compute(record)`, declaring the attribute if it
        isn't declared yet."""
        result = evolve(self, columns={**self.columns, name: compute})
        if header is not None or name not in self.attribute_names:
            result = result.with_attribute(name, header)
        return result

    def with_style(self: T, target: str, style: Mapping) -> T:
        """Set the style rule for `target`, replacing any previous rule for it."""
        return evolve(self, styles={**self.styles, target: style})

    def with_streaming_threshold(self: T, threshold: int) -> T:
        return evolve(self, streaming_threshold=int(threshold))

    def with_batch_size(self: T, batch_size: int) -> T:
        return evolve(self, batch_size=int(batch_size))

    def with_strict(self: T, strict: bool = True) -> T:
        return evolve(self, strict=strict)

    def with_hooks(self: T, **hooks: Optional[Callable]) -> T:
        """Set any of the ``before_render``, ``after_render``, ``before_row`` and ``after_row`` callbacks."""
        unknown = set(hooks) - set(HOOK_NAMES)
        if unknown:
            raise ConfigurationError(f'Unknown hooks {sorted(unknown)}, valid hooks are {HOOK_NAMES}', self.name)
        return evolve(self, **hooks)

    def extend(self: T, other: 'ReportDefinition') -> T:
        """Compose `other` over this definition: its attributes are appended or redefine ours, its style rules
        and computed columns are added over ours, and its name, thresholds and hooks win where set."""
        overrides = {
            field: getattr(other, field)
            for field in ('name', 'streaming_threshold', 'batch_size', *HOOK_NAMES)
            if getattr(other, field) is not None
        }
        return evolve(
            self,
            attributes=_merge_specs(self.attributes, other.attributes),
            styles={**self.styles, **other.styles},
            columns={**self.columns, **other.columns},
            strict=self.strict or other.strict,
            **overrides
        )
