from __future__ import annotations

from dataclasses import fields, replace
from typing import Mapping

from scoutforall.contracts import ScoringRules


def default_scoring_rules() -> ScoringRules:
    return ScoringRules()


def load_scoring_rules(overrides: Mapping[str, object] | None = None) -> ScoringRules:
    rules = default_scoring_rules()
    if not overrides:
        return rules
    known = {f.name for f in fields(ScoringRules)}
    unknown = sorted(set(overrides) - known)
    if unknown:
        raise ValueError(f"unknown scoring rules keys: {', '.join(unknown)}")
    values = dict(overrides)
    if "partial_thresholds" in values:
        values["partial_thresholds"] = tuple(values["partial_thresholds"])  # type: ignore[arg-type]
    rules = replace(rules, **values)
    rules.validate()
    return rules
