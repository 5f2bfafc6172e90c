from django.core.exceptions import ValidationError


def get_or_none(model, **lookup):
    """Fetch a single row or None. Malformed UUIDs count as missing."""
    try:
        return model.objects.get(**lookup)
    except (model.DoesNotExist, ValidationError, ValueError):
        return None


def unique_by_id(objects):
    """Drop repeated objects, keeping the first occurrence of each id"""
    seen = set()
    unique = []
    for obj in objects:
        if obj.id in seen:
            continue
        seen.add(obj.id)
        unique.append(obj)
    return unique


def same_id(left, right) -> bool:
    return left is not None and right is not None and str(left) == str(right)


def first_or_none(model, **lookup):
    """Like ``get_or_none`` for lookups that may match several rows"""
    try:
        return model.objects.filter(**lookup).first()
    except (ValidationError, ValueError):
        return None


def exists(model, **lookup) -> bool:
    try:
        return model.objects.filter(**lookup).exists()
    except (ValidationError, ValueError):
        return False
