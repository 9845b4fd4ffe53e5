from __future__ import annotations

from typing import Any

from table_engine.core.filters import PropertyType
from table_engine.validation.errors import ValidationIssue, ValidationError


def validate_table_dict(obj: Any) -> None:
    """
    Validate the raw table JSON BEFORE building a TableConfig, so a half-valid
    definition never reaches the engine. All problems are reported together.
    """
    issues: list[ValidationIssue] = []

    if not isinstance(obj, dict):
        raise ValidationError([ValidationIssue("TABLE_TYPE", "Table definition must be a JSON object.")])

    page_size = obj.get("page_size", 25)
    if not isinstance(page_size, int) or isinstance(page_size, bool) or page_size < 1:
        issues.append(ValidationIssue("TABLE_PAGE_SIZE", f"page_size must be a positive integer, got {page_size!r}."))

    id_field = obj.get("id_field", "recordId")
    if not isinstance(id_field, str) or not id_field:
        issues.append(ValidationIssue("TABLE_ID_FIELD", "id_field must be a non-empty string."))

    columns = obj.get("columns", [])
    if not isinstance(columns, list):
        issues.append(ValidationIssue("TABLE_COLUMNS_TYPE", "columns must be a list."))
        columns = []

    for i, col in enumerate(columns):
        if not isinstance(col, dict):
            issues.append(ValidationIssue("COLUMN_TYPE", f"columns[{i}] must be an object."))
            continue
        if not str(col.get("header") or "").strip():
            issues.append(ValidationIssue("COLUMN_HEADER", f"columns[{i}].header missing."))
        accessor = col.get("accessor")
        if accessor is not None and not isinstance(accessor, str):
            issues.append(ValidationIssue("COLUMN_ACCESSOR", f"columns[{i}].accessor must be a string or null."))
        if col.get("sortable") and accessor is None:
            issues.append(ValidationIssue("COLUMN_SORTABLE", f"columns[{i}] is sortable but has no accessor."))

    props = obj.get("filter_properties", [])
    if not isinstance(props, list):
        issues.append(ValidationIssue("TABLE_PROPERTIES_TYPE", "filter_properties must be a list."))
        props = []

    valid_types = {t.value for t in PropertyType}
    seen_ids: set[str] = set()
    for i, prop in enumerate(props):
        if not isinstance(prop, dict):
            issues.append(ValidationIssue("PROPERTY_TYPE", f"filter_properties[{i}] must be an object."))
            continue
        prop_id = prop.get("id")
        if not prop_id:
            issues.append(ValidationIssue("PROPERTY_ID", f"filter_properties[{i}].id missing."))
        elif prop_id in seen_ids:
            issues.append(ValidationIssue("PROPERTY_DUPLICATE", f"filter_properties[{i}].id '{prop_id}' is duplicated."))
        else:
            seen_ids.add(prop_id)
        if prop.get("type") not in valid_types:
            issues.append(
                ValidationIssue(
                    "PROPERTY_VALUE_TYPE",
                    f"filter_properties[{i}].type must be one of {sorted(valid_types)}, got {prop.get('type')!r}.",
                )
            )

    groups = obj.get("quick_filter_groups", [])
    if not isinstance(groups, list):
        issues.append(ValidationIssue("TABLE_GROUPS_TYPE", "quick_filter_groups must be a list."))
        groups = []

    for i, group in enumerate(groups):
        if not isinstance(group, dict):
            issues.append(ValidationIssue("GROUP_TYPE", f"quick_filter_groups[{i}] must be an object."))
            continue
        if not group.get("id"):
            issues.append(ValidationIssue("GROUP_ID", f"quick_filter_groups[{i}].id missing."))
        if not group.get("accessor"):
            issues.append(ValidationIssue("GROUP_ACCESSOR", f"quick_filter_groups[{i}].accessor missing."))
        options = group.get("options", [])
        if not isinstance(options, list) or any(not isinstance(o, dict) or "value" not in o for o in options):
            issues.append(ValidationIssue("GROUP_OPTIONS", f"quick_filter_groups[{i}].options must be objects with a value."))

    if issues:
        raise ValidationError(issues)
