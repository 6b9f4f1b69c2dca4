"""Render templates and write the generated package.

Takes the context from context_builder and produces
<output_dir>/client.py and <output_dir>/__init__.py. Both files are
rendered before either is written, and each lands through a temporary file
replaced into place, so a failed run never leaves a partial client behind.
"""

from __future__ import annotations

import logging
import os
import tempfile
from pathlib import Path
from typing import Any

import jinja2

logger = logging.getLogger(__name__)

TEMPLATE_DIR = Path(__file__).parent / "templates"

CLIENT_TEMPLATE = "client.py.j2"
PACKAGE_TEMPLATE = "package.py.j2"


def _environment() -> jinja2.Environment:
    return jinja2.Environment(
        loader=jinja2.FileSystemLoader(str(TEMPLATE_DIR)),
        keep_trailing_newline=True,
        trim_blocks=True,
        lstrip_blocks=True,
        undefined=jinja2.StrictUndefined,
    )


def render(context: dict[str, Any]) -> dict[str, str]:
    """Render the generated package in memory: file name -> source."""
    env = _environment()
    return {
        "client.py": env.get_template(CLIENT_TEMPLATE).render(**context),
        "__init__.py": env.get_template(PACKAGE_TEMPLATE).render(**context),
    }


def _write_atomic(path: Path, content: str) -> None:
    fd, tmp_name = tempfile.mkstemp(dir=path.parent, prefix=f".{path.name}.", suffix=".tmp")
    try:
        with os.fdopen(fd, "w", encoding="utf-8") as f:
            f.write(content)
        os.replace(tmp_name, path)
    except BaseException:
        Path(tmp_name).unlink(missing_ok=True)
        raise


def generate(context: dict[str, Any], output_dir: Path) -> list[Path]:
    """Render the client templates and write them under ``output_dir``."""
    files = render(context)

    output_dir.mkdir(parents=True, exist_ok=True)
    written = []
    for name, source in files.items():
        path = output_dir / name
        _write_atomic(path, source)
        logger.debug("Wrote %s", path)
        written.append(path)

    logger.info(
        "Generated %s (%d operations, %d types)",
        output_dir, context["operation_count"], context["type_count"],
    )
    return written
