import inspect
import re
import unicodedata
from numbers import Integral


def column_letter(column_number: Integral) -> str:
    """Convert 1-based `column_number` into an Excel column name.

    Column names are a bijective base-26 numeral: there is no digit for zero, so each step subtracts one
    before taking the remainder.

    Examples:
        >>> column_letter(1), column_letter(26), column_letter(27), column_letter(52), column_letter(53)
        ('A', 'Z', 'AA', 'AZ', 'BA')
    """
    if column_number < 1:
        raise ValueError(f'Column number must be positive, got {column_number}')

    result = ''
    while column_number > 0:
        column_number, remainder = divmod(column_number - 1, 26)
        result = chr(remainder + ord('A')) + result
    return result


def underscore(name: str) -> str:
    """Turn a CamelCase `name` into snake_case.

    Examples:
        >>> underscore('UserReport')
        'user_report'
        >>> underscore('HTTPLogReport')
        'http_log_report'
    """
    name = re.sub(r'([A-Z]+)([A-Z][a-z])', r'\1_\2', name)
    name = re.sub(r'([a-z\d])([A-Z])', r'\1_\2', name)
    return name.replace('-', '_').lower()


def humanize(name: str) -> str:
    """Turn an attribute `name` into a display header.

    Examples:
        >>> humanize('id')
        'Id'
        >>> humanize('first_name')
        'First name'
        >>> humanize('author_id')
        'Author'
    """
    text = re.sub(r'_id$', '', str(name)).lstrip('_')
    text = text.replace('_', ' ').strip().lower()
    return text[:1].upper() + text[1:]


def parameterize(text: str, separator: str = '-') -> str:
    """Make `text` safe for filenames and URLs: ASCII only, lowercase, runs of other characters collapsed into
    `separator`.

    Examples:
        >>> parameterize('Monthly Sales: Q1/Q2')
        'monthly-sales-q1-q2'
    """
    ascii_text = unicodedata.normalize('NFKD', text).encode('ascii', 'ignore').decode('ascii')
    result = re.sub(r'[^a-z0-9\-_]+', separator, ascii_text.lower())
    if separator:
        escaped = re.escape(separator)
        result = re.sub(f'{escaped}{{2,}}', separator, result)
        result = re.sub(f'^{escaped}|{escaped}$', '', result)
    return result


def accepts_no_arguments(function) -> bool:
    """Whether `function` can be called without arguments. Callables without an inspectable signature can't.

    Examples:
        >>> accepts_no_arguments(lambda: 1), accepts_no_arguments(lambda x=1: x), accepts_no_arguments(len)
        (True, True, False)
    """
    try:
        signature = inspect.signature(function)
    except (TypeError, ValueError):
        return False
    return all(
        parameter.default is not parameter.empty
        or parameter.kind in (parameter.VAR_POSITIONAL, parameter.VAR_KEYWORD)
        for parameter in signature.parameters.values()
    )
