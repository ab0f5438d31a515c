"""
Type algebra resolver.

Narrows the extraction tool's open set of type-node shapes into the closed
``TypeValue`` algebra defined in :mod:`tsdocref.models`. Four variants are
understood (intrinsic, reference, reflection and indexedAccess); anything
else resolves to ``None`` and the owning field is left out of the output.
"""

from typing import Any, Callable, Dict, Optional, Type, TypeVar

from tsdocref.logger import logger
from tsdocref.models import (
    ANONYMOUS,
    Comment,
    DeclarationIndex,
    IntrinsicType,
    ObjectType,
    Property,
    RawNode,
    ReflectionKind,
    TypeValue,
    TypeVariant,
    Member,
)

M = TypeVar("M", bound=Member)

TypeHandler = Callable[[RawNode, DeclarationIndex], Optional[TypeValue]]


def parse_type(type_node: Any, index: DeclarationIndex) -> Optional[TypeValue]:
    if not isinstance(type_node, dict):
        return None

    variant = type_node.get("type")
    handler = _TYPE_HANDLERS.get(variant) if isinstance(variant, str) else None
    if handler is None:
        logger.debug("Unsupported type-node variant dropped", variant=variant)
        return None
    return handler(type_node, index)


def parse_comment(raw: Any) -> Optional[Comment]:
    if not isinstance(raw, dict):
        return None
    return Comment.model_validate(raw)


def parse_member(
    member_cls: Type[M],
    node: RawNode,
    index: DeclarationIndex,
    default_name: Optional[str] = None,
) -> M:
    """
    Build a parameter or property record from a declaration *node*.
    ``isOptional`` and ``comment`` are only set when the node carries them.
    An empty or missing name is replaced by *default_name* when one is given;
    otherwise the name is copied as is.
    """
    name = node.get("name")
    if not name and default_name is not None:
        name = default_name

    fields: Dict[str, Any] = {
        "name": name,
        "type": parse_type(node.get("type"), index),
    }

    if (node.get("flags") or {}).get("isOptional"):
        fields["is_optional"] = True

    comment = parse_comment(node.get("comment"))
    if comment is not None:
        fields["comment"] = comment

    return member_cls(**fields)


# --- variant handlers ---------------------------------------------------
def _parse_intrinsic(
    type_node: RawNode, index: DeclarationIndex
) -> Optional[TypeValue]:
    return IntrinsicType(
        name=type_node.get("name"),
        comment=parse_comment(type_node.get("comment")),
    )


def _parse_reference(
    type_node: RawNode, index: DeclarationIndex
) -> Optional[TypeValue]:
    # The extraction tool supplies the dereferenced type inline; the
    # declaration index is not consulted here.
    target = (type_node.get("dereferenced") or {}).get("type")
    if not target:
        return None

    resolved = parse_type(target, index)
    if resolved is None or isinstance(resolved, str):
        return resolved

    update: Dict[str, Any] = {"name": type_node.get("name") or resolved.name}

    comment = type_node.get("comment")
    if isinstance(comment, dict):
        base = resolved.comment.to_dict() if resolved.comment else {}
        update["comment"] = Comment.model_validate({**base, **comment})

    return resolved.model_copy(update=update)


def _parse_reflection(
    type_node: RawNode, index: DeclarationIndex
) -> Optional[TypeValue]:
    declaration = type_node.get("declaration")
    if not isinstance(declaration, dict):
        return None

    kind = declaration.get("kindString")
    if kind == ReflectionKind.TYPE_LITERAL:
        return _parse_type_literal(declaration, index)

    logger.debug("Unsupported reflection declaration dropped", kind=kind)
    return None


def _parse_type_literal(declaration: RawNode, index: DeclarationIndex) -> ObjectType:
    properties = [
        parse_member(Property, child, index, default_name=ANONYMOUS)
        for child in declaration.get("children") or []
        if child.get("kindString") == ReflectionKind.PROPERTY
    ]
    return ObjectType(
        name=declaration.get("name") or ANONYMOUS,
        properties=properties,
    )


def _parse_indexed_access(
    type_node: RawNode, index: DeclarationIndex
) -> Optional[TypeValue]:
    object_type = type_node.get("objectType") or {}
    if object_type.get("type") != TypeVariant.REFERENCE:
        return None

    target = index.get(object_type.get("id"))
    if target is None:
        logger.debug(
            "Indexed access target not in index", target_id=object_type.get("id")
        )
        return None

    index_type = type_node.get("indexType") or {}
    if (
        target.get("kindString") == ReflectionKind.INTERFACE
        and index_type.get("type") == TypeVariant.LITERAL
    ):
        # Display placeholder only: the property's own type is not substituted.
        return f"{object_type.get('name')}['{index_type.get('value')}']"

    return None


_TYPE_HANDLERS: Dict[str, TypeHandler] = {
    TypeVariant.INTRINSIC.value: _parse_intrinsic,
    TypeVariant.REFERENCE.value: _parse_reference,
    TypeVariant.REFLECTION.value: _parse_reflection,
    TypeVariant.INDEXED_ACCESS.value: _parse_indexed_access,
}
