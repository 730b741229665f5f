"""
Validation Gate

Pre-flight checks run on the uploads before integration:

1. Presence - each of the four reports is required
2. File type - Excel MIME type, or .xlsx/.xls extension when no MIME type
   is known
3. File size - at most settings.max_file_size_mb
4. Structure - the expected sheet exists, is not empty and carries every
   required column header

A type or size failure short-circuits the remaining checks for that file.
Present files are checked concurrently and independently; the overall
result is valid iff no file produced an error.

Warnings never block integration. They are raised for a sheet with headers
but no data rows, and for optional columns whose values will default.
"""

import asyncio
import io
import logging
from pathlib import PurePath
from typing import List, Optional, Sequence, Tuple

import pandas as pd

from field_kpis.core.config import get_settings
from field_kpis.models import SourceType, UploadedFile, UploadedFiles, ValidationResult
from field_kpis.services.formatting import format_file_size
from field_kpis.services.parsers import FILE_VALIDATION_REQUIREMENTS, FileParseError

logger = logging.getLogger(__name__)


# =============================================================================
# CONSTANTS
# =============================================================================

VALID_EXCEL_MIME_TYPES: Tuple[str, ...] = (
    'application/vnd.openxmlformats-officedocument.spreadsheetml.sheet',
    'application/vnd.ms-excel',
)

VALID_EXCEL_EXTENSIONS: Tuple[str, ...] = ('.xlsx', '.xls')

BYTES_PER_MB: int = 1024 * 1024


# =============================================================================
# INDIVIDUAL CHECKS
# =============================================================================

def is_valid_excel_file(file: UploadedFile) -> bool:
    """
    Check whether an upload looks like an Excel workbook.

    The reported MIME type wins when present; otherwise the filename
    extension decides.
    """
    if file.content_type:
        return file.content_type in VALID_EXCEL_MIME_TYPES
    return PurePath(file.filename).suffix.lower() in VALID_EXCEL_EXTENSIONS


def _describe_limit(max_size_bytes: int) -> str:
    if max_size_bytes % BYTES_PER_MB == 0:
        return f"{max_size_bytes // BYTES_PER_MB}MB"
    return format_file_size(max_size_bytes)


def is_valid_file_size(file: UploadedFile, max_size_bytes: Optional[int] = None) -> bool:
    if max_size_bytes is None:
        max_size_bytes = get_settings().max_file_size_bytes
    return file.size <= max_size_bytes


def validate_file_structure(
    content: bytes,
    sheet_name: str,
    required_columns: Sequence[str],
) -> pd.DataFrame:
    """
    Check that a workbook has the expected sheet and column headers.

    Args:
        content: Raw workbook bytes
        sheet_name: Sheet that must exist
        required_columns: Headers that must all be present

    Returns:
        The decoded sheet, for callers that want to inspect it further

    Raises:
        FileParseError: 'Required sheet "X" not found', 'File is empty',
            'Missing required columns: A, B' or a decode failure
    """
    try:
        with pd.ExcelFile(io.BytesIO(content)) as workbook:
            if sheet_name not in workbook.sheet_names:
                raise FileParseError(f'Required sheet "{sheet_name}" not found')
            df = workbook.parse(sheet_name, dtype=object)
    except FileParseError:
        raise
    except pd.errors.EmptyDataError as e:
        raise FileParseError('File is empty') from e
    except Exception as e:
        raise FileParseError(f'Failed to parse Excel file: {str(e)}') from e

    if len(df.columns) == 0:
        raise FileParseError('File is empty')

    headers = {str(col).strip() for col in df.columns}
    missing = [col for col in required_columns if col not in headers]
    if missing:
        raise FileParseError(f"Missing required columns: {', '.join(missing)}")

    return df


async def validate_file(
    file: UploadedFile,
    source_type: SourceType,
    max_size_bytes: Optional[int] = None,
) -> ValidationResult:
    """
    Validate a single upload against its source type's requirements.

    Returns:
        ValidationResult for this file alone
    """
    errors: List[str] = []
    warnings: List[str] = []
    file_type = source_type.value

    if max_size_bytes is None:
        max_size_bytes = get_settings().max_file_size_bytes

    if not is_valid_excel_file(file):
        errors.append(f"{file_type} file must be an Excel file (.xlsx or .xls)")
        return ValidationResult(is_valid=False, errors=errors, warnings=warnings)

    if not is_valid_file_size(file, max_size_bytes):
        errors.append(f"{file_type} file size must be under {_describe_limit(max_size_bytes)}")
        return ValidationResult(is_valid=False, errors=errors, warnings=warnings)

    requirements = FILE_VALIDATION_REQUIREMENTS[source_type]
    try:
        df = await asyncio.to_thread(
            validate_file_structure,
            file.content,
            requirements.sheet_name,
            requirements.required_columns,
        )
    except FileParseError as e:
        errors.append(f"{file_type} file validation failed: {str(e)}")
        return ValidationResult(is_valid=False, errors=errors, warnings=warnings)

    if df.empty:
        warnings.append(
            f'{file_type} file has no data rows in sheet "{requirements.sheet_name}"'
        )

    headers = {str(col).strip() for col in df.columns}
    missing_optional = [col for col in requirements.optional_columns if col not in headers]
    if missing_optional:
        warnings.append(
            f"{file_type} file is missing optional columns: {', '.join(missing_optional)}"
        )

    return ValidationResult(is_valid=True, errors=errors, warnings=warnings)


# =============================================================================
# MAIN ENTRY POINT
# =============================================================================

async def validate_uploaded_files(
    files: UploadedFiles,
    max_size_bytes: Optional[int] = None,
) -> ValidationResult:
    """
    Validate the four report uploads before integration.

    Args:
        files: The uploads; missing ones are reported as errors
        max_size_bytes: Size ceiling per file (default from settings)

    Returns:
        ValidationResult; is_valid is True only when no errors were found
    """
    errors: List[str] = []
    warnings: List[str] = []

    present: List[Tuple[SourceType, UploadedFile]] = []
    for source_type, file in files.items():
        if file is None:
            errors.append(f"{FILE_VALIDATION_REQUIREMENTS[source_type].label} is required")
        else:
            present.append((source_type, file))

    results = await asyncio.gather(
        *(validate_file(file, source_type, max_size_bytes) for source_type, file in present)
    )
    for result in results:
        errors.extend(result.errors)
        warnings.extend(result.warnings)

    is_valid = not errors
    if is_valid:
        logger.info(f"Validated {len(present)} uploads ({len(warnings)} warnings)")
    else:
        logger.warning(f"Upload validation failed with {len(errors)} errors: {errors}")

    return ValidationResult(is_valid=is_valid, errors=errors, warnings=warnings)


__all__ = [
    'VALID_EXCEL_MIME_TYPES',
    'VALID_EXCEL_EXTENSIONS',
    'is_valid_excel_file',
    'is_valid_file_size',
    'validate_file_structure',
    'validate_file',
    'validate_uploaded_files',
]
