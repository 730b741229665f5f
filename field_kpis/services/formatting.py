"""
Display formatters for KPI values and upload metadata.

Output follows en-US conventions: "$1,234.56", "87.5%", "1,234",
"1.5 KB".
"""

from typing import Union

from field_kpis.models import KPIName, KPIUnit
from field_kpis.services.kpi_calculator import KPI_DEFINITIONS

Number = Union[int, float]

FILE_SIZE_BASE: int = 1024
FILE_SIZE_UNITS = ('Bytes', 'KB', 'MB', 'GB')


def _trim_decimals(text: str) -> str:
    if '.' in text:
        text = text.rstrip('0').rstrip('.')
    return text


def format_currency(amount: Number) -> str:
    """US dollars with two decimals and thousands separators; negatives as -$12.00."""
    sign = '-' if amount < 0 else ''
    return f"{sign}${abs(amount):,.2f}"


def format_percentage(value: Number, decimals: int = 1) -> str:
    return f"{value:.{decimals}f}%"


def format_count(count: Number) -> str:
    """Thousands separators; non-integral counts keep up to three decimals."""
    if float(count).is_integer():
        return f"{int(count):,}"
    return _trim_decimals(f"{count:,.3f}")


def format_file_size(size_bytes: int) -> str:
    """
    Human-readable file size using 1024-based units.

    Examples:
        0 -> "0 Bytes", 1536 -> "1.5 KB", 10485760 -> "10 MB"
    """
    if size_bytes <= 0:
        return '0 Bytes'

    # Integer search avoids float log error at exact powers of 1024
    exponent = 0
    while exponent < len(FILE_SIZE_UNITS) - 1 and size_bytes >= FILE_SIZE_BASE ** (exponent + 1):
        exponent += 1
    scaled = size_bytes / FILE_SIZE_BASE ** exponent
    return f"{_trim_decimals(f'{scaled:.2f}')} {FILE_SIZE_UNITS[exponent]}"


def format_kpi_value(kpi: KPIName, value: Number) -> str:
    """Format a KPI value according to its display unit."""
    unit = KPI_DEFINITIONS[KPIName(kpi)].unit
    if unit == KPIUnit.CURRENCY:
        return format_currency(value)
    if unit == KPIUnit.PERCENT:
        return format_percentage(value)
    return format_count(value)


__all__ = [
    'format_currency',
    'format_percentage',
    'format_count',
    'format_file_size',
    'format_kpi_value',
]
