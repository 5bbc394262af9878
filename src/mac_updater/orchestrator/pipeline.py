"""Pipeline builder: the ordered list of steps for one run."""

from __future__ import annotations

import logging
import re
from typing import List, Optional, Sequence

from ..config import AppConfig
from .catalog import BUILTIN_STEPS
from .steps import CustomCommands, Step

logger = logging.getLogger(__name__)


def _slugify(text: str) -> str:
    slug = re.sub(r"[^a-z0-9]+", "-", text.lower()).strip("-")
    return slug or "step"


def build_pipeline(config: AppConfig, catalog: Optional[Sequence[Step]] = None) -> List[Step]:
    """Assemble the steps for a run.

    1. Start from the canonical built-in order (``catalog``, defaults to
       BUILTIN_STEPS).
    2. Drop every step whose description is in ``config.skip_steps``
       (exact, case-sensitive match).
    3. Append one step per enabled custom command, in declaration order.
       Custom steps named in ``skip_steps`` are dropped as well.

    Skip entries that match nothing are ignored.
    """
    catalog = BUILTIN_STEPS if catalog is None else catalog
    skip = config.skip_steps

    steps: List[Step] = []
    matched = set()
    for step in catalog:
        if step.description in skip:
            matched.add(step.description)
            logger.info("Skipping (configured): %s", step.description)
            continue
        steps.append(step)

    for index, custom in enumerate(config.custom_commands):
        if not custom.enabled:
            logger.debug("Custom command disabled: %s", custom.name)
            continue
        if custom.name in skip:
            matched.add(custom.name)
            logger.info("Skipping (configured): %s", custom.name)
            continue
        steps.append(
            Step(
                id=f"custom-{index + 1}-{_slugify(custom.name)}",
                description=custom.name,
                action=CustomCommands(commands=tuple(custom.commands)),
            )
        )

    unmatched = sorted(skip - matched)
    if unmatched:
        logger.warning("skip_steps entries matching no step: %s", ", ".join(unmatched))

    logger.info("Pipeline built: %d step(s)", len(steps))
    return steps
