"""
Pipeline orchestrator: wires the decoder stages together.

header -> pass 1 (schema + timestamps) -> builders -> pass 2 (merge) -> table

Both entry points are pure functions of the input span: no state is kept
between calls.
"""

import logging
import time
from typing import Optional

from .cursor import ByteSpan
from .merge import merge
from .models import ParseOptions
from .schema import Schema, infer
from .source import open_span
from .table import Table, assemble_table

logger = logging.getLogger(__name__)


def infer_schema(data: ByteSpan, options: Optional[ParseOptions] = None) -> Schema:
    """
    Run pass 1 only and return the ordered column registry.

    Raises:
        InvalidFormatError, ParseError, SchemaError
    """
    return infer(data, options).schema


def parse(data: ByteSpan, options: Optional[ParseOptions] = None) -> Table:
    """
    Decode a complete WPILog span into a Table.

    Args:
        data: WPILog bytes (bytes, bytearray, memoryview or mmap)
        options: strict (default) or lenient handling of bad data records

    Returns:
        Table with a timestamp column followed by one column per entry, in
        order of first Start. In lenient mode ``Table.skipped`` lists the
        data records that were dropped.
    """
    options = options or ParseOptions()
    t_start = time.perf_counter()

    # ======================================================================
    # Pass 1: schema + timestamp index
    # ======================================================================
    t0 = time.perf_counter()
    inference = infer(data, options)
    logger.info(
        "Pass 1: %d columns, %d rows in %.3fs",
        len(inference.schema), inference.row_count, time.perf_counter() - t0,
    )

    # ======================================================================
    # Pass 2: sparse merge into pre-sized builders
    # ======================================================================
    t0 = time.perf_counter()
    result = merge(data, inference, options)
    logger.info(
        "Pass 2: merged in %.3fs (%d skipped, %d overwritten)",
        time.perf_counter() - t0, len(result.skipped), result.overwrites,
    )

    table = assemble_table(
        inference.header,
        inference.timestamps,
        result.builders,
        skipped=result.skipped,
    )
    logger.info(
        "Parsed %d rows x %d columns in %.3fs",
        table.row_count, table.width, time.perf_counter() - t_start,
    )
    return table


def parse_file(path: str, options: Optional[ParseOptions] = None,
               use_mmap: bool = True) -> Table:
    """Parse a WPILog file, memory-mapped by default."""
    with open_span(path, use_mmap=use_mmap) as span:
        return parse(span, options)


def infer_schema_file(path: str, options: Optional[ParseOptions] = None,
                      use_mmap: bool = True) -> Schema:
    with open_span(path, use_mmap=use_mmap) as span:
        return infer_schema(span, options)
