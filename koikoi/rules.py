"""
Koi-Koi Rule Sets

Defines rule configurations for the scoring categories and the named
variants built from them:
- Koi-Koi (standard rules)
- Hachi-Hachi style (stricter variant)
"""

import json
from dataclasses import dataclass, field, fields, asdict
from enum import IntEnum
from pathlib import Path
from typing import Any, Dict, Union


class ViewingMode(IntEnum):
    """When the sake-cup viewing yaku are recognised"""
    NEVER = 0    # Never scored
    LIMITED = 1  # Only alongside another, non-viewing yaku
    ALWAYS = 2   # Always scored


@dataclass(frozen=True)
class BrightRules:
    # Score every matching bright yaku instead of only the best one
    allow_multiple: bool = False


@dataclass(frozen=True)
class AnimalRules:
    # Score Five Animals even when Boar-Deer-Butterfly already scored
    allow_multiple: bool = True
    # Points per animal beyond the required count
    extra_points: int = 1
    # Whether the sake cup counts as an animal
    count_sake_cup: bool = True


@dataclass(frozen=True)
class RibbonRules:
    # Keep checking after the first ribbon yaku
    allow_multiple: bool = True
    # Points per ribbon beyond five
    extra_points: int = 1


@dataclass(frozen=True)
class ViewingRules:
    mode: ViewingMode = ViewingMode.ALWAYS
    # Rain cancels flower viewing, fog cancels moon viewing
    weather_dependent: bool = False
    # Double points in the yaku's home month
    seasonal_bonus: bool = False
    # Only score in the yaku's home month
    seasonal_only: bool = False


@dataclass(frozen=True)
class ChaffRules:
    # Points per chaff beyond ten
    extra_points: int = 1
    # Whether the sake cup also counts as chaff
    count_sake_cup: bool = False


@dataclass(frozen=True)
class MonthRules:
    # Score every complete month, not only the current one
    allow_multiple_months: bool = False


@dataclass(frozen=True)
class HandRules:
    # Check the dealt hands for teyaku before play starts
    allow_teyaku: bool = True


@dataclass(frozen=True)
class RuleConfig:
    """
    Rule configuration for Koi-Koi scoring.

    Variants differ in how each yaku category treats extra cards, the
    sake cup and the viewing yaku. This class bundles one sub-config per
    category and is never mutated once a game has been created.
    """

    name: str = "Default"
    bright: BrightRules = field(default_factory=BrightRules)
    animal: AnimalRules = field(default_factory=AnimalRules)
    ribbon: RibbonRules = field(default_factory=RibbonRules)
    viewing: ViewingRules = field(default_factory=ViewingRules)
    chaff: ChaffRules = field(default_factory=ChaffRules)
    month: MonthRules = field(default_factory=MonthRules)
    hand: HandRules = field(default_factory=HandRules)

    def to_dict(self) -> Dict[str, Any]:
        data = asdict(self)
        data["viewing"]["mode"] = self.viewing.mode.name
        return data

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'RuleConfig':
        """
        Build a config from a (possibly partial) dict. Missing categories
        and fields keep their defaults.

        Raises:
            ValueError: on unknown categories or fields
        """
        sub_configs = {f.name: f.default_factory for f in fields(cls) if f.name != "name"}
        unknown = set(data) - set(sub_configs) - {"name"}
        if unknown:
            raise ValueError(f"Unknown rule categories: {sorted(unknown)}")

        kwargs: Dict[str, Any] = {"name": data.get("name", "Custom")}
        for category, sub_cls in sub_configs.items():
            values = dict(data.get(category) or {})
            allowed = {f.name for f in fields(sub_cls)}
            bad = set(values) - allowed
            if bad:
                raise ValueError(f"Unknown {category} rules: {sorted(bad)}")
            if category == "viewing" and "mode" in values:
                values["mode"] = _parse_viewing_mode(values["mode"])
            kwargs[category] = sub_cls(**values)
        return cls(**kwargs)

    def __repr__(self) -> str:
        return f"RuleConfig({self.name})"


def _parse_viewing_mode(value: Union[str, int, ViewingMode]) -> ViewingMode:
    if isinstance(value, str):
        try:
            return ViewingMode[value.upper()]
        except KeyError:
            raise ValueError(f"Unknown viewing mode: {value}") from None
    return ViewingMode(value)


# Standard Koi-Koi rules
KOIKOI_RULES = RuleConfig(
    name="Koi-Koi",
    bright=BrightRules(allow_multiple=False),
    animal=AnimalRules(allow_multiple=True, extra_points=1, count_sake_cup=True),
    ribbon=RibbonRules(allow_multiple=True, extra_points=1),
    viewing=ViewingRules(
        mode=ViewingMode.ALWAYS,
        weather_dependent=True,
        seasonal_bonus=True,
        seasonal_only=True,
    ),
    chaff=ChaffRules(extra_points=1, count_sake_cup=False),
    month=MonthRules(allow_multiple_months=False),
    hand=HandRules(allow_teyaku=True),
)


# Hachi-Hachi style rules (stricter: no sake cup animal, one ribbon or animal yaku)
HACHI_RULES = RuleConfig(
    name="Hachi",
    bright=BrightRules(allow_multiple=True),
    animal=AnimalRules(allow_multiple=False, extra_points=1, count_sake_cup=False),
    ribbon=RibbonRules(allow_multiple=False, extra_points=1),
    viewing=ViewingRules(
        mode=ViewingMode.ALWAYS,
        weather_dependent=False,
        seasonal_bonus=False,
        seasonal_only=False,
    ),
    chaff=ChaffRules(extra_points=0, count_sake_cup=False),
    month=MonthRules(allow_multiple_months=True),
    hand=HandRules(allow_teyaku=True),
)


RULE_PRESETS: Dict[str, RuleConfig] = {
    "koikoi": KOIKOI_RULES,
    "hachi": HACHI_RULES,
}


def get_rule_preset(name: str) -> RuleConfig:
    """Look up a named preset (case-insensitive)"""
    try:
        return RULE_PRESETS[name.lower()]
    except KeyError:
        raise ValueError(
            f"Unknown rule preset: {name} (choose from {', '.join(RULE_PRESETS)})"
        ) from None


def load_rules(path: Union[str, Path]) -> RuleConfig:
    """
    Load a custom rule configuration from a JSON file.

    The file may name a preset to start from with a "preset" key; the
    remaining keys override that preset category by category.
    """
    data = json.loads(Path(path).read_text(encoding="utf-8"))
    preset_name = data.pop("preset", None)
    if preset_name is None:
        return RuleConfig.from_dict(data)

    merged = get_rule_preset(preset_name).to_dict()
    merged["name"] = data.pop("name", f"{merged['name']} (custom)")
    for category, values in data.items():
        if not isinstance(values, dict) or category not in merged:
            raise ValueError(f"Unknown rule category: {category}")
        merged[category].update(values)
    return RuleConfig.from_dict(merged)
