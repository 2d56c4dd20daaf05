"""AST to host value projection."""

from __future__ import annotations

from typing import Any

from ._errors import AxonError
from ._types import ArrayNode, Document, Node, ObjectNode, PrimitiveNode


def build(node: Node) -> Any:
    if isinstance(node, PrimitiveNode):
        return node.value
    if isinstance(node, ObjectNode):
        return {key: build(child) for key, child in node.fields.items()}
    if isinstance(node, ArrayNode):
        return [build(item) for item in node.items]
    # Schema, enum and dictionary declarations describe values; they are not
    # values themselves.
    raise AxonError("{} has no host value".format(type(node).__name__))


def build_document(doc: Document) -> Any:
    return build(doc.root)
