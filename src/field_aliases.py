from dataclasses import dataclass
from typing import Dict, List, Mapping, Optional, Sequence, Tuple


@dataclass(frozen=True)
class AliasRule:
    """Priority-ordered label substrings for one canonical field."""
    field: str
    aliases: Tuple[str, ...]
    excludes: Tuple[str, ...] = ()

    def matches(self, alias: str, label: str) -> bool:
        text = label.lower()
        if any(ex in text for ex in self.excludes):
            return False
        return alias in text

    def matches_exactly(self, alias: str, label: str) -> bool:
        return label.strip().lower() == alias and self.matches(alias, label)


# Evaluated top to bottom, first alias that matches any label wins.
ALIAS_RULES: Tuple[AliasRule, ...] = (
    AliasRule("name", ("business name", "company name", "name")),
    AliasRule("address", ("address",), excludes=("email", "gmail")),
    AliasRule("phone", ("phone",)),
    AliasRule("website", ("website", "web site", "url")),
    AliasRule("email", ("email", "e-mail")),
    AliasRule("year_founded", ("founded", "year", "established")),
    AliasRule("main_services", ("main services", "primary services", "services"), excludes=("other", "additional")),
    AliasRule("other_services", ("other services", "additional services", "other main services")),
    AliasRule("company_size", ("company size", "size", "employees")),
    AliasRule("service_area", ("service area", "radius", "coverage")),
    AliasRule("description", ("description", "about")),
    AliasRule("contractor_type", ("contractor type", "business type", "type")),
    AliasRule("gmail", ("gmail account", "gmail address", "gmail"), excludes=("password",)),
    AliasRule("gmail_app_password", ("gmail app password", "app password")),
)

RULES_BY_FIELD: Dict[str, AliasRule] = {rule.field: rule for rule in ALIAS_RULES}
CANONICAL_FIELDS: List[str] = [rule.field for rule in ALIAS_RULES]


def _rule_for(canonical_field: str) -> AliasRule:
    try:
        return RULES_BY_FIELD[canonical_field]
    except KeyError:
        raise KeyError(f"Unknown canonical field: {canonical_field!r}") from None


def resolve_label(labels: Sequence[str], canonical_field: str) -> Optional[str]:
    """
    Pick the label that holds a canonical field.

    Aliases are tried in priority order. For each alias an exact label wins
    over one that merely contains it, otherwise labels are scanned in the
    order given. Ties are therefore broken by alias order, never by
    label order.

    Args:
        labels (Sequence[str]): Human-entered field labels.
        canonical_field (str): Canonical field identifier, e.g. "name".

    Returns:
        Optional[str]: The matching label, or None when nothing matches.
    """
    rule = _rule_for(canonical_field)
    for alias in rule.aliases:
        for label in labels:
            if label and rule.matches_exactly(alias, label):
                return label
        for label in labels:
            if label and rule.matches(alias, label):
                return label
    return None


def resolve_row_index(grid: Sequence[Sequence[str]], canonical_field: str) -> int:
    """Row index of the label row for `canonical_field`, or -1 if absent."""
    labels = [str(row[0]).strip() if row and row[0] is not None else "" for row in grid]
    label = resolve_label(labels, canonical_field)
    if label is None:
        return -1
    return labels.index(label)


def resolve_row_mapping(grid: Sequence[Sequence[str]]) -> Dict[str, int]:
    """Resolve every canonical field to its row index in one pass."""
    return {name: resolve_row_index(grid, name) for name in CANONICAL_FIELDS}


def get_value(label_map: Mapping[str, str], canonical_field: str) -> str:
    """
    Value of a canonical field from a label -> value map.

    The label is resolved against every key of the map; an empty value means
    the field is absent for this business.
    """
    label = resolve_label(list(label_map.keys()), canonical_field)
    if label is None:
        return ""
    return label_map.get(label, "") or ""
