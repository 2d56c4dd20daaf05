"""Token statistics appended by ``encode(..., stats=True)``.

Counts are a rough estimate: words between punctuation, plus half a token
per punctuation character.  The block is written as ``#`` comments so the
document still decodes to the same value.
"""

from __future__ import annotations

import json
import math
import re
from dataclasses import dataclass
from typing import Any, List

_SPLIT = re.compile(r'[\s\[\]{}():,|"]+')
_PUNCT = re.compile(r'[\[\]{}():,|"]')


def estimate_tokens(text: str) -> int:
    words = [w for w in _SPLIT.split(text) if w]
    return len(words) + math.ceil(len(_PUNCT.findall(text)) * 0.5)


@dataclass
class TokenStats:
    axon_tokens: int
    json_tokens: int
    json_compact_tokens: int

    @property
    def reduction_vs_json(self) -> float:
        if self.json_tokens <= 0:
            return 0.0
        return 1 - self.axon_tokens / self.json_tokens

    @property
    def reduction_vs_json_compact(self) -> float:
        if self.json_compact_tokens <= 0:
            return 0.0
        return 1 - self.axon_tokens / self.json_compact_tokens


def token_stats(value: Any, encoded: str) -> TokenStats:
    pretty = json.dumps(value, indent=2, ensure_ascii=False)
    compact = json.dumps(value, separators=(",", ":"), ensure_ascii=False)
    return TokenStats(
        axon_tokens=estimate_tokens(encoded),
        json_tokens=estimate_tokens(pretty),
        json_compact_tokens=estimate_tokens(compact),
    )


def stats_comment(stats: TokenStats) -> List[str]:
    return [
        "",
        "# Token Statistics:",
        "#   AXON tokens: {}".format(stats.axon_tokens),
        "#   JSON (pretty) tokens: {}".format(stats.json_tokens),
        "#   JSON (compact) tokens: {}".format(stats.json_compact_tokens),
        "#   Reduction vs JSON: {:.1f}%".format(stats.reduction_vs_json * 100),
        "#   Reduction vs JSON compact: {:.1f}%".format(stats.reduction_vs_json_compact * 100),
    ]
