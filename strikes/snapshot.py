"""
Snapshot artifact: a JSON array of {lat, lng, age} objects
"""

import json
import logging
import os
import tempfile
from pathlib import Path
from typing import Iterable, List, Union

from .models import GeoStrike

logger = logging.getLogger(__name__)


def serialize_snapshot(strikes: Iterable[GeoStrike]) -> str:
    """2-space indented JSON, one object per strike in order"""
    return json.dumps([s.to_dict() for s in strikes], indent=2, ensure_ascii=False)


def write_snapshot(strikes: Iterable[GeoStrike], path: Union[str, Path]) -> Path:
    """
    Replace the snapshot file with the given strikes

    The text goes to a temporary file in the same directory first and is then
    moved over the target, so readers only ever see a complete snapshot.
    """
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    text = serialize_snapshot(strikes)

    fd, tmp_name = tempfile.mkstemp(prefix=f".{path.name}.", suffix='.tmp', dir=path.parent)
    try:
        with os.fdopen(fd, 'w', encoding='utf-8') as f:
            f.write(text)
            f.flush()
            os.fsync(f.fileno())
        os.replace(tmp_name, path)
    except BaseException:
        if os.path.exists(tmp_name):
            os.unlink(tmp_name)
        raise

    logger.info(f"Saved snapshot to {path}")
    return path


def read_snapshot(path: Union[str, Path]) -> List[GeoStrike]:
    with open(path, 'r', encoding='utf-8') as f:
        return [GeoStrike.from_dict(record) for record in json.load(f)]


def export_snapshot(strikes: Iterable[GeoStrike], path: Union[str, Path]) -> Path:
    """Manual export of the strikes currently shown, same shape as the artifact"""
    strikes = list(strikes)
    path = write_snapshot(strikes, path)
    logger.info(f"Exported {len(strikes)} strikes to {path}")
    return path
