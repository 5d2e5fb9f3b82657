# =============================================================================
# Binary Classifier
# =============================================================================
# Decides whether a response body has to be base64 encoded before it is put
# into the Lambda result.
# =============================================================================

from typing import Any, Callable, Iterable, Mapping, Optional, Union

BinaryPredicate = Callable[[Any, Any], bool]
BinaryConfig = Union[bool, Iterable[str], BinaryPredicate, None]


def _header_value(headers: Any, name: str) -> Optional[str]:
    """Case-insensitive lookup that works for HTTPHeaderDict and plain dicts."""
    if not headers:
        return None
    if hasattr(headers, "getlist"):
        values = headers.getlist(name)
        return values[0] if values else None
    for key, value in headers.items():
        if key.lower() == name:
            if isinstance(value, (list, tuple)):
                return value[0] if value else None
            return value
    return None


def get_content_type(headers: Any) -> Optional[str]:
    """Media type of `headers` with parameters (charset etc.) stripped."""
    value = _header_value(headers, "content-type")
    if value is None:
        return None
    return str(value).split(";", 1)[0].strip()


def _binary_config(options: Any) -> BinaryConfig:
    if options is None:
        return None
    if isinstance(options, Mapping):
        return options.get("binary")
    return getattr(options, "binary", None)


def is_binary(headers: Any, options: Any = None) -> bool:
    """
    Classify a response as binary (True) or text (False).

    `options` is a ServerlessOptions or any mapping with a "binary" entry:
    False disables encoding, True forces it, a callable decides on its own
    and anything else is a list of media types, where "image/*" matches the
    whole image family.
    """
    binary = _binary_config(options)

    if binary is False:
        return False
    if binary is True:
        return True
    if callable(binary):
        return bool(binary(headers, options))

    content_type = get_content_type(headers)
    if not content_type or not binary:
        return False

    patterns = [binary] if isinstance(binary, str) else list(binary)
    primary = content_type.split("/", 1)[0]
    for pattern in patterns:
        if pattern == content_type:
            return True
        if pattern.endswith("/*") and pattern[:-2] == primary:
            return True
    return False
