from typing import List, Optional

from tsdocref.index import build_declaration_index
from tsdocref.logger import logger
from tsdocref.models import (
    DeclarationIndex,
    ModuleTypes,
    Parameter,
    RawNode,
    ReflectionKind,
    Signature,
)
from tsdocref.types import parse_comment, parse_member

CONSTRUCTOR_SUFFIX = "constructor"

# Kinds whose children are walked with the node's name appended to the path.
# `None` covers the document root and unclassified wrapper nodes.
_CONTAINER_KINDS = (
    ReflectionKind.MODULE,
    ReflectionKind.CLASS,
    ReflectionKind.PROJECT,
    None,
)


def parse_type_spec(spec: RawNode) -> List[ModuleTypes]:
    """Resolve every top-level module of a reflection document."""
    modules = [parse_module(mod) for mod in spec.get("children") or []]
    logger.info(
        "Type spec resolved",
        modules=len(modules),
        signatures=sum(len(m.methods) for m in modules),
    )
    return modules


def parse_module(mod: RawNode) -> ModuleTypes:
    res = ModuleTypes(name=mod.get("name"))

    index = build_declaration_index(mod)
    _parse_node(mod, index, [], res)

    logger.debug(
        "Module resolved",
        module=res.name,
        declarations=len(index),
        signatures=len(res.methods),
    )
    return res


def _parse_node(
    node: RawNode, index: DeclarationIndex, path: List[str], res: ModuleTypes
) -> None:
    kind = node.get("kindString")

    if kind == ReflectionKind.CONSTRUCTOR:
        # Constructors go on to walk their own children like a container;
        # in practice they have none, so this adds nothing.
        parse_constructor(node, index, path, res)
    elif kind not in _CONTAINER_KINDS:
        # References and leaf declarations (properties, interfaces, ...)
        return

    child_path = [*path, node.get("name") or ""]
    for child in node.get("children") or []:
        _parse_node(child, index, child_path, res)


def parse_constructor(
    node: RawNode, index: DeclarationIndex, path: List[str], res: ModuleTypes
) -> Optional[Signature]:
    """
    Record the first signature of a constructor declaration under
    ``<path>.constructor``. Overloads beyond the first are ignored, and a
    second constructor on the same path replaces the first.
    """
    ref = f"{'.'.join(path)}.{CONSTRUCTOR_SUFFIX}"

    signatures = node.get("signatures") or []
    signature = signatures[0] if signatures else None
    if not isinstance(signature, dict):
        logger.debug("Constructor without signatures skipped", ref=ref)
        return None

    params = [
        parse_member(Parameter, param, index)
        for param in signature.get("parameters") or []
    ]

    result = Signature(name=ref, params=params)

    comment = parse_comment(signature.get("comment"))
    if comment is not None:
        result.comment = comment

    res.methods[ref] = result
    return result
