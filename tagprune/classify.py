"""
Tag classification rules.

Tags on a protected release line (e.g. ``v35``) are kept when they are plain
version numbers and deleted when they carry a suffix such as ``-beta``.
Every other tag starting with the delete prefix is deleted; everything else
is kept.
"""

import re
from dataclasses import dataclass, field
from typing import Iterable, List, Optional, Sequence

_SUFFIX_RE = re.compile(r"[^0-9.]")


@dataclass
class TagRules:
    protected_prefixes: Sequence[str] = ("v35", "v36", "v37", "v38")
    delete_prefix: str = "v"


@dataclass
class TagPlan:
    keep: List[str] = field(default_factory=list)
    delete: List[str] = field(default_factory=list)

    @property
    def total(self) -> int:
        return len(self.keep) + len(self.delete)


def should_delete(tag: str, rules: TagRules) -> bool:
    for prefix in rules.protected_prefixes:
        if tag.startswith(prefix):
            return bool(_SUFFIX_RE.search(tag[len(prefix):]))
    return bool(rules.delete_prefix) and tag.startswith(rules.delete_prefix)


def classify_tags(tags: Iterable[str], rules: Optional[TagRules] = None) -> TagPlan:
    """
    Split tags into keep and delete lists, preserving input order.

    :param tags: Tag names.
    :param rules: Classification rules (default: TagRules()).
    :return: TagPlan with the two lists.
    """
    rules = rules or TagRules()
    plan = TagPlan()
    for tag in tags:
        if should_delete(tag, rules):
            plan.delete.append(tag)
        else:
            plan.keep.append(tag)
    return plan
