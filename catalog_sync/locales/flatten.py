from __future__ import annotations

from typing import Any

"""Flattening of nested locale documents into dotted-key catalogs.

Mapping fields join with '.', list items join with their index, primitive
leaves are stringified and None is dropped. Insertion order is preserved
because it is the on-disk order used for write-back.
"""

__all__ = [
    "flatten_document",
    "is_flat_document",
    "unflatten_catalog",
    "merge_into_document",
]


def _stringify(value: Any) -> str:
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value)


def flatten_document(document: Any, prefix: str = "", output: dict[str, str] | None = None) -> dict[str, str]:
    """Flatten ``document`` into ``output`` (created when omitted) and return it.

    A primitive at the top level has no key and is ignored.
    """
    if output is None:
        output = {}
    if document is None:
        return output

    if isinstance(document, dict):
        for key, value in document.items():
            next_key = f"{prefix}.{key}" if prefix else str(key)
            flatten_document(value, next_key, output)
        return output

    if isinstance(document, list):
        for index, item in enumerate(document):
            next_key = f"{prefix}.{index}" if prefix else str(index)
            flatten_document(item, next_key, output)
        return output

    if prefix:
        output[prefix] = _stringify(document)
    return output


def is_flat_document(document: Any) -> bool:
    """True when every top-level value is a primitive (or None)."""
    if not isinstance(document, dict):
        return False
    return not any(isinstance(value, (dict, list)) for value in document.values())


def _listify(node: Any) -> Any:
    # dicts keyed exactly "0".."n-1" were lists before flattening
    if not isinstance(node, dict):
        return node
    restored = {key: _listify(value) for key, value in node.items()}
    keys = list(restored)
    if keys and keys == [str(i) for i in range(len(keys))]:
        return [restored[key] for key in keys]
    return restored


def unflatten_catalog(catalog: dict[str, str]) -> dict[str, Any]:
    """Rebuild a nested document from a flat catalog.

    Raises:
        ValueError: if a key is both a leaf and a section (``home`` and
            ``home.title``); such a catalog has no nested representation.
    """
    root: dict[str, Any] = {}
    for flat_key, value in catalog.items():
        parts = flat_key.split(".")
        node = root
        for depth, part in enumerate(parts[:-1]):
            child = node.setdefault(part, {})
            if not isinstance(child, dict):
                section = ".".join(parts[: depth + 1])
                raise ValueError(f"key path collision: '{section}' is a value and a section ('{flat_key}')")
            node = child
        leaf = parts[-1]
        if isinstance(node.get(leaf), dict):
            raise ValueError(f"key path collision: '{flat_key}' is a value and a section")
        node[leaf] = value
    return _listify(root)


def _leaf_matches(original: Any, value: Any) -> bool:
    return original is not None and not isinstance(original, (dict, list)) and _stringify(original) == value


def _merge_mapping(original: dict[Any, Any], updated: dict[str, Any]) -> dict[Any, Any]:
    original_keys = {str(key): key for key in original}
    names = list(original_keys)
    order = list(updated)
    # entries without flat leaves (null, {}, []) go back before the next original key still present
    for index, name in enumerate(names):
        if name in updated:
            continue
        anchor = next((later for later in names[index + 1 :] if later in updated), None)
        if anchor is None:
            order.append(name)
        else:
            order.insert(order.index(anchor), name)

    merged: dict[Any, Any] = {}
    for name in order:
        if name in original_keys and name in updated:
            key = original_keys[name]
            merged[key] = merge_into_document(original[key], updated[name])
        elif name in updated:
            merged[name] = updated[name]
        else:
            key = original_keys[name]
            merged[key] = original[key]
    return merged


def _merge_sequence(original: list[Any], updated: list[Any] | dict[str, Any]) -> list[Any] | dict[str, Any]:
    items = list(updated.items()) if isinstance(updated, dict) else list(enumerate(updated))
    if not all(str(index).isdigit() for index, _ in items):
        return updated
    merged = list(original)
    for index, value in items:
        position = int(index)
        if position < len(merged):
            merged[position] = merge_into_document(merged[position], value)
        else:
            merged.append(value)
    return merged


def merge_into_document(original: Any, updated: Any) -> Any:
    """Carry untouched parts of ``original`` into the rebuilt ``updated`` document.

    ``updated`` comes from a flat string catalog, so it has lost what
    flattening drops. A leaf whose text is unchanged keeps its original
    value (numbers and booleans keep their type), and null leaves plus empty
    sections come back at their original position. Changed and added
    entries take the value from ``updated``.
    """
    if isinstance(original, dict) and isinstance(updated, dict):
        return _merge_mapping(original, updated)
    if isinstance(original, dict) and isinstance(updated, list):
        return _merge_mapping(original, {str(index): value for index, value in enumerate(updated)})
    if isinstance(original, list) and isinstance(updated, (list, dict)):
        return _merge_sequence(original, updated)
    if _leaf_matches(original, updated):
        return original
    return updated
