"""Classification of restic's human-readable output.

Everything that depends on restic's exact phrasing lives here.
"""

import math
import re
from typing import Optional

from ..__util__ import ResultNotFound

SNAPSHOT_SAVED = r"snapshot ([0-9a-zA-Z]+) saved"
SNAPSHOT_REMOVED = r"removed snapshot ([0-9a-zA-Z]+)"

_PROCESSED = re.compile(
    r"processed \d+ files?, ([0-9]+(?:\.[0-9]+)?) (B|KiB|MiB|GiB|TiB)"
)

_UNIT_BYTES = {
    "B": 1,
    "KiB": 1024,
    "MiB": 1024**2,
    "GiB": 1024**3,
    "TiB": 1024**4,
}


def extract_snapshot_id(output: str, pattern: str) -> str:
    """Return the snapshot id captured by ``pattern`` in ``output``.

    Raises:
        ValueError: If ``pattern`` does not have exactly one capture group
        ResultNotFound: If the confirmation line is absent
    """
    regex = re.compile(pattern)
    if regex.groups != 1:
        raise ValueError(f"Pattern must have exactly one capture group: {pattern!r}")

    match = regex.search(output)
    if match is None:
        raise ResultNotFound(pattern)
    return match.group(1)


def extract_processed_size_mb(output: str) -> Optional[int]:
    """Size in whole MiB from restic's 'processed N files, X MiB' summary line."""
    match = _PROCESSED.search(output)
    if match is None:
        return None
    size_bytes = float(match.group(1)) * _UNIT_BYTES[match.group(2)]
    return math.ceil(size_bytes / _UNIT_BYTES["MiB"])
