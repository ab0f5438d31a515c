from typing import Optional

from tsdocref.models import DeclarationIndex, RawNode


def build_declaration_index(
    node: RawNode, index: Optional[DeclarationIndex] = None
) -> DeclarationIndex:
    """
    Map every node carrying an ``id`` (the root included) to itself.

    Only the ``children`` relation is followed. The tree is trusted to be
    acyclic; a later node with a duplicate id replaces the earlier one.
    """
    if index is None:
        index = {}

    if "id" in node:
        index[node["id"]] = node

    for child in node.get("children") or []:
        build_declaration_index(child, index)

    return index
