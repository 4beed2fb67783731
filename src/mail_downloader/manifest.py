"""CSV index of the messages saved by a run."""

import logging
from pathlib import Path
from typing import Iterable, Union

import pandas as pd

from .models import FIELD_NAMES, field_file_name

logger = logging.getLogger(__name__)

MANIFEST_COLUMNS = ["number"] + [f"{field}_file" for field in FIELD_NAMES]


def build_manifest(message_numbers: Iterable[int]) -> pd.DataFrame:
    """One row per saved message, sorted by number, naming its four files."""
    rows = [
        {"number": number, **{f"{field}_file": field_file_name(number, field) for field in FIELD_NAMES}}
        for number in sorted(message_numbers)
    ]
    return pd.DataFrame(rows, columns=MANIFEST_COLUMNS)


def write_manifest(message_numbers: Iterable[int], path: Union[str, Path]) -> pd.DataFrame:
    """Write the manifest CSV to `path` and return the DataFrame written."""
    df = build_manifest(message_numbers)
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    df.to_csv(path, index=False)
    logger.info(f"Wrote manifest {path} with {len(df)} messages")
    return df
