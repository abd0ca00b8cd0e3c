"""
Loading CSV files from disk.

Files are read concurrently and joined all-or-nothing: the first file that
fails to load aborts the batch with a single error.
"""

import asyncio
import logging
from pathlib import Path
from typing import List, Optional, Sequence, Union

from .errors import LoadError
from .models import Dataset
from .parser import MAX_CONTENT_SIZE, CSVParser


__all__ = ["read_dataset", "load_datasets", "MAX_FILES"]

logger = logging.getLogger(__name__)

MAX_FILES = 2

PathLike = Union[str, Path]


def read_dataset(path: PathLike, parser: Optional[CSVParser] = None) -> Dataset:
    """
    Read and parse a single CSV file

    Args:
        path: Path to a .csv file
        parser: Parser to use, defaults to CSVParser()

    Returns:
        Parsed Dataset named after the file

    Raises:
        LoadError: If the file is missing, not a .csv file, too large or
            not valid UTF-8
        FormatError: If the content fails to parse
    """
    parser = parser or CSVParser()
    path = Path(path)
    if not path.is_file():
        raise LoadError(f"File not found: {path}")
    if path.suffix.lower() != '.csv':
        raise LoadError(f"{path.name} is not a CSV file")
    if path.stat().st_size > MAX_CONTENT_SIZE:
        raise LoadError(f"{path.name} exceeds the {MAX_CONTENT_SIZE // (1024 * 1024)}MB limit")

    try:
        content = path.read_text(encoding='utf-8-sig')
    except (OSError, UnicodeDecodeError) as exc:
        raise LoadError(f"Error reading {path.name}: {exc}") from exc

    return parser.parse(content, path.name)


async def _load_all(paths: Sequence[PathLike], parser: CSVParser) -> List[Dataset]:
    return list(await asyncio.gather(
        *(asyncio.to_thread(read_dataset, path, parser) for path in paths)
    ))


def load_datasets(
    paths: Sequence[PathLike],
    max_files: int = MAX_FILES,
    parser: Optional[CSVParser] = None
) -> List[Dataset]:
    """
    Read several CSV files concurrently

    Args:
        paths: Files to load
        max_files: Maximum number of files accepted in one batch
        parser: Parser to use, defaults to CSVParser()

    Returns:
        Datasets in the same order as paths

    Raises:
        LoadError: If too many paths are given or any file cannot be read
        FormatError: If any file fails to parse
    """
    if len(paths) > max_files:
        raise LoadError(f"At most {max_files} files can be loaded, got {len(paths)}")

    datasets = asyncio.run(_load_all(paths, parser or CSVParser()))
    logger.info("Loaded %d file(s): %s", len(datasets), ', '.join(d.name for d in datasets))
    return datasets
