"""
Token-budget sampling for code2prompt.

Randomly subsets file records until a fraction of the original token count is reached,
and rebuilds a tree that shows exactly the sampled files.
"""

from __future__ import annotations

import logging
import math
import random
from collections.abc import Callable, Sequence

from .config import FileRecord
from .tree import build_tree

logger = logging.getLogger(__name__)

TokenCounter = Callable[[str], int]


def sample_target(total_tokens: int, rate: float) -> int:
    """Token target for a sample rate, rounded half away from zero."""
    return math.floor(total_tokens * rate / 100 + 0.5)


def sample_files(
    files: Sequence[FileRecord],
    source_tree: str,
    rate: float,
    root_label: str,
    count_tokens: TokenCounter,
    rng: random.Random | None = None,
) -> tuple[list[FileRecord], str]:
    """
    Sample file records down to a token budget.

    Args:
        files: Records in discovery order
        source_tree: Rendered tree of the full selection
        rate: Percentage of tokens to keep (0-100)
        root_label: Label of the root, used as the sampled tree's root
        count_tokens: Tokenizer used to size each record's code
        rng: Random source; a fresh, OS-seeded generator when None

    Returns:
        Tuple of (sampled records, rendered tree of the sampled records)
    """
    if rate >= 100:
        return list(files), source_tree
    if rate <= 0 or not files:
        return [], ""

    token_counts = [count_tokens(f.code) for f in files]
    total_tokens = sum(token_counts)
    target = sample_target(total_tokens, rate)

    rng = rng or random.Random()
    order = list(range(len(files)))
    rng.shuffle(order)

    chosen: list[int] = []
    accumulated = 0
    for index in order:
        if accumulated >= target:
            break
        chosen.append(index)
        accumulated += token_counts[index]

    sampled = [files[i] for i in chosen]
    logger.debug(
        "Sampled %d of %d files (%d of %d tokens, target %d)",
        len(sampled), len(files), accumulated, total_tokens, target,
    )

    tree = build_tree(root_label, (f.relative_path for f in sampled))
    return sampled, tree.render() if sampled else ""
