from typing import Any


def split_tag_string(raw_tags: str | None) -> list[str]:
    if not raw_tags:
        return []
    return normalize_tags(raw_tags.split(","))


def normalize_tags(value: Any) -> list[str]:
    """Trim, lower-case and de-duplicate model supplied tags, keeping their order."""
    if not value:
        return []
    if isinstance(value, str):
        return split_tag_string(value)
    if not isinstance(value, (list, tuple)):
        return []

    tags: list[str] = []
    seen = set()
    for item in value:
        if item is None or isinstance(item, (dict, list)):
            continue
        tag = str(item).strip().lower()
        if tag and tag not in seen:
            tags.append(tag)
            seen.add(tag)
    return tags
