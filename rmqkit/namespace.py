"""Adding and stripping namespace prefixes on resource names."""

from .text import is_empty

NAMESPACE_SEPARATOR = "%"
RETRY_PREFIX = "%RETRY%"
DLQ_PREFIX = "%DLQ%"


def _is_already_with_namespace(resource: str, namespace: str) -> bool:
    if is_empty(namespace) or is_empty(resource):
        return False
    return namespace + NAMESPACE_SEPARATOR in resource


def wrap_namespace(namespace: str, resource: str) -> str:
    """Prefix ``resource`` with ``namespace%`` unless it is empty or already prefixed."""
    if is_empty(namespace) or is_empty(resource):
        return resource
    if _is_already_with_namespace(resource, namespace):
        return resource
    return namespace + NAMESPACE_SEPARATOR + resource


def without_namespace(resource: str) -> str:
    """Strip a namespace from ``resource``, keeping any retry or DLQ prefix."""
    if not resource:
        return resource
    prefix = ""
    if resource.startswith(RETRY_PREFIX):
        prefix = RETRY_PREFIX
    elif resource.startswith(DLQ_PREFIX):
        prefix = DLQ_PREFIX
    index = resource.rfind(NAMESPACE_SEPARATOR)
    if index > 0:
        return prefix + resource[index + 1:]
    return resource