import json
import logging
from functools import lru_cache
from typing import List, Optional

import config
from basemodel_dto.scheme_dto import Scheme

logger = logging.getLogger(__name__)


@lru_cache(maxsize=1)
def load_schemes(path: str = None) -> tuple:
    path = path or config.SCHEMES_DATA_PATH
    with open(path, "r", encoding="utf-8") as f:
        raw = json.load(f)
    schemes = tuple(Scheme.model_validate(item) for item in raw)
    logger.info("Loaded %d schemes from %s", len(schemes), path)
    return schemes


def list_schemes(category: Optional[str] = None, state: Optional[str] = None) -> List[Scheme]:
    schemes = load_schemes()
    if category:
        schemes = [s for s in schemes if s.category.lower() == category.lower()]
    if state:
        # Central schemes apply in every state
        schemes = [s for s in schemes if s.category == "Central" or s.state.lower() == state.lower()]
    return list(schemes)


def get_scheme(scheme_id: str) -> Optional[Scheme]:
    return next((s for s in load_schemes() if s.id == scheme_id), None)


def scheme_ids() -> List[str]:
    return [s.id for s in load_schemes()]
