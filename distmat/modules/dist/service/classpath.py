"""Runtime classpath assembly."""

from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import Iterable, List, Set, Union

log = logging.getLogger(__name__)


class ClasspathAssembler:
    def assemble(self, elements: Iterable[Union[str, Path]]) -> List[Path]:
        """Return existing classpath elements in order with duplicates dropped."""
        seen: Set[str] = set()
        classpath: List[Path] = []
        for element in elements:
            if element is None or str(element).strip() == "":
                continue
            path = Path(element).expanduser()
            key = os.path.normcase(os.path.abspath(path))
            if key in seen:
                continue
            seen.add(key)
            if not path.exists():
                log.warning("Skipping missing classpath element: %s", path)
                continue
            log.debug("Including classpath element for app build: %s", path)
            classpath.append(path)
        return classpath
