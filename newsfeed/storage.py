import json
import logging
from pathlib import Path
from typing import Sequence, Union

from .errors import PersistenceError
from .models import NewsRecord

logger = logging.getLogger(__name__)


def save_json(path: Union[str, Path], records: Sequence[NewsRecord]) -> Path:
    """Write ``records`` to ``path`` as indented JSON, replacing any old file."""
    path = Path(path)
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        with path.open("w", encoding="utf-8") as f:
            json.dump([r.to_dict() for r in records], f, ensure_ascii=False, indent=2)
    except OSError as exc:
        raise PersistenceError(f"Could not write {path}: {exc}") from exc
    logger.info("Data saved to %s", path)
    return path
