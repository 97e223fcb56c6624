"""Mapping between profile fields and option categories.

Every enumerated profile or preference field is validated and labelled
through the option registry using the category named here.
"""

import copy
from typing import Any

from src.api.middleware.error_handler import ValidationError, field_detail
from src.models.profile import AgeRange, MatchPreferences
from src.schemas.option import OptionCategory
from src.services.option_registry import OptionRegistry

FIELD_CATEGORIES: dict[str, OptionCategory] = {
    "gender": OptionCategory.GENDER,
    "religion": OptionCategory.RELIGION,
    "serving_as": OptionCategory.SERVING_AS,
    "relationship_status": OptionCategory.RELATIONSHIP_STATUS,
    "looking_for": OptionCategory.LOOKING_FOR,
    "have_children": OptionCategory.HAVE_CHILDREN,
    "education": OptionCategory.EDUCATION,
    "income": OptionCategory.INCOME,
    "match_preferences.gender": OptionCategory.MATCH_GENDER,
    "match_preferences.religion": OptionCategory.MATCH_RELIGION,
    "match_preferences.education_level": OptionCategory.MATCH_EDUCATION_LEVEL,
    "match_preferences.wants_children": OptionCategory.MATCH_WANTS_CHILDREN,
}

# Baseline used when the registry flags no default for a field
BASE_DEFAULTS: dict[str, Any] = {
    "relationship_status": "single",
    "looking_for": "not-sure",
    "have_children": "no",
    "match_preferences": MatchPreferences(
        gender="both",
        age_range=AgeRange(min=21, max=50),
        location_range=100,
    ),
}


def _camel(field: str) -> str:
    head, *rest = field.split("_")
    return head + "".join(part.title() for part in rest)


def get_field_value(data: dict[str, Any], path: str) -> Any:
    """Read a possibly nested field such as match_preferences.gender."""
    value: Any = data
    for part in path.split("."):
        if not isinstance(value, dict):
            return None
        value = value.get(part)
    return value


async def validate_option_fields(registry: OptionRegistry, data: dict[str, Any]) -> None:
    """Validate every enumerated field present in data.

    Null values are skipped. The first invalid field is reported alone so
    the client can correct one input at a time.

    Args:
        registry: Option registry used for lookups.
        data: Profile fields, with preferences nested under match_preferences.

    Raises:
        ValidationError: If a value is not an active option of its category.
    """
    for path, category in FIELD_CATEGORIES.items():
        value = get_field_value(data, path)
        if value is None:
            continue
        if not await registry.validate_option(category.value, value):
            raise ValidationError(
                f"Invalid value for {path}",
                details=field_detail(path, value, f"Not an active {category.value} option", "invalid_option"),
            )


async def resolve_labels(
    registry: OptionRegistry,
    data: dict[str, Any],
    locale: str | None = None,
) -> dict[str, Any]:
    """Resolve display labels for the enumerated fields of a profile.

    Unknown values fall back to the raw value.

    Returns:
        dict: e.g. {"genderLabel": "Male", "matchPreferences": {"genderLabel": "Both"}}
    """
    labels: dict[str, Any] = {}
    preference_labels: dict[str, Any] = {}
    for path, category in FIELD_CATEGORIES.items():
        value = get_field_value(data, path)
        if value is None:
            continue
        label = await registry.get_option_label(category.value, value, locale)
        if path.startswith("match_preferences."):
            preference_labels[f"{_camel(path.split('.', 1)[1])}Label"] = label
        else:
            labels[f"{_camel(path)}Label"] = label
    if data.get("match_preferences") is not None:
        labels["matchPreferences"] = preference_labels
    return labels


def _set_field_value(data: dict[str, Any], path: str, value: Any) -> None:
    if "." in path:
        parent, child = path.split(".", 1)
        data.setdefault(parent, {})[child] = value
    else:
        data[path] = value


def _drop_field_value(data: dict[str, Any], path: str) -> None:
    if "." in path:
        parent, child = path.split(".", 1)
        if isinstance(data.get(parent), dict):
            data[parent].pop(child, None)
    else:
        data.pop(path, None)


async def get_default_values(registry: OptionRegistry) -> dict[str, Any]:
    """Build profile defaults from the baseline and registry defaults.

    A flagged registry default wins. Otherwise the baseline value is kept
    only while it is still an active option, and the field is left unset
    when it is not.
    """
    defaults = copy.deepcopy(BASE_DEFAULTS)
    for path, category in FIELD_CATEGORIES.items():
        value = await registry.get_default_value(category.value)
        if value is not None:
            _set_field_value(defaults, path, value)
            continue
        baseline = get_field_value(defaults, path)
        if baseline is not None and not await registry.validate_option(category.value, baseline):
            _drop_field_value(defaults, path)
    return defaults
