"""
Paper Discovery
===============
Finds downloaded papers in the ETS resource folder.

Directory Layout:
    %APPDATA%/ETS/
    ├── common/            # shared vendor assets, not a paper
    └── {paper_id}/        # one directory per downloaded paper
        ├── {question}/content.json
        └── ...
"""

from __future__ import annotations

import logging
import os
from datetime import datetime
from pathlib import Path
from typing import Optional, Union

from .errors import DocumentIOError
from .models import Paper

logger = logging.getLogger(__name__)

RESOURCE_DIR_ENV = "ETS_RESOURCE_DIR"

# Vendor directories in the resource folder that are not papers
NON_PAPER_DIRS = {"common"}


def default_resource_dir() -> Optional[Path]:
    """
    Resource folder from ``ETS_RESOURCE_DIR``, else ``%APPDATA%/ETS``.
    Returns None when neither variable is set.
    """
    override = os.environ.get(RESOURCE_DIR_ENV)
    if override:
        return Path(override)
    appdata = os.environ.get("APPDATA")
    if appdata:
        return Path(appdata) / "ETS"
    return None


def read_paper(paper_path: Union[str, Path]) -> Paper:
    """Build a Paper from its directory; the id is the directory name."""
    path = Path(paper_path)
    try:
        mtime = path.stat().st_mtime
    except OSError as e:
        raise DocumentIOError(
            f"Cannot stat paper directory {path}: {e.strerror or e}",
            source=path,
        ) from e
    return Paper(
        paper_id=path.name,
        paper_path=str(path),
        modified=datetime.fromtimestamp(mtime).date(),
    )


def discover_papers(resource_dir: Union[str, Path]) -> list[Paper]:
    """List every paper directory in the resource folder, sorted by id."""
    root = Path(resource_dir)
    if not root.is_dir():
        raise DocumentIOError(
            f"Resource directory not found: {root}", source=root
        )

    papers = [
        read_paper(child)
        for child in sorted(root.iterdir(), key=lambda p: p.name)
        if child.is_dir() and child.name not in NON_PAPER_DIRS
    ]
    logger.info(f"Discovered {len(papers)} papers in {root}")
    return papers
