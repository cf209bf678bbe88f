"""End-to-end generation: discover, build context, render, write."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Optional

from .context.builder import DomainObject, from_domain_object, merge_overrides
from .context.store import VariableStore
from .core.errors import NoTemplatesFoundError
from .core.models import GenerateConfig
from .rendering.discovery import discover_templates
from .rendering.engine import TemplateProcessor
from .rendering.io import write_processed_files

logger = logging.getLogger(__name__)


def build_store(
    record: DomainObject, variables_file: Optional[Path] = None
) -> VariableStore:
    """Build the variable store for ``record``, merging overrides if given."""
    logger.info(f"Building variable context from {type(record).__name__.lower()}...")
    store = from_domain_object(record)
    logger.info(f"Variable context built with {len(store)} variables")

    if variables_file is not None:
        logger.info(f"Loading custom variables from {variables_file}...")
        merge_overrides(store, variables_file)
        logger.info("Custom variables merged successfully")

    return store


def generate(config: GenerateConfig, record: DomainObject) -> list[Path]:
    """Render every template under ``config.template_dir`` into ``config.output_dir``.

    Fails fast: the first error aborts the run, and files written before it
    are left in place.

    Args:
        config: Generation configuration
        record: Blueprint or stack supplying the variables

    Returns:
        Written output file paths
    """
    logger.info(f"Discovering templates in {config.template_dir}...")
    template_files = discover_templates(config.template_dir)
    if not template_files:
        raise NoTemplatesFoundError(config.template_dir)

    logger.info(f"Discovered {len(template_files)} template file(s)")
    for template_file in template_files:
        logger.debug(f"  - {template_file.relative_path}")

    store = build_store(record, config.variables_file)
    processor = TemplateProcessor(store)

    logger.info(f"Rendering templates into {config.output_dir}...")
    outputs: list[Path] = []
    for template_file in template_files:
        processed = processor.process_file(template_file)
        outputs.extend(
            write_processed_files([processed], config.output_dir, mode=config.file_mode)
        )

    logger.info(f"Successfully generated {len(outputs)} file(s)")
    return outputs
