from pydantic import BaseModel, ConfigDict, Field, TypeAdapter
from enum import Enum
from typing import Annotated, Any, Dict, List, Literal, Optional, Union

# ---------------------------------------------------------------------------
# Enumerations
# ---------------------------------------------------------------------------


class ReflectionKind(str, Enum):
    # Declaration kinds (`kindString`) emitted by the extraction tool
    PROJECT = "Project"
    MODULE = "Module"
    CLASS = "Class"
    INTERFACE = "Interface"
    CONSTRUCTOR = "Constructor"
    PROPERTY = "Property"
    REFERENCE = "Reference"
    TYPE_LITERAL = "Type literal"


class TypeVariant(str, Enum):
    # Type-node discriminators (`type`)
    INTRINSIC = "intrinsic"
    REFERENCE = "reference"
    REFLECTION = "reflection"
    INDEXED_ACCESS = "indexedAccess"
    LITERAL = "literal"


# Placeholder name for inline type literals without a declared name
ANONYMOUS = "[ANONYMOUS]"

# Raw input, as decoded from the reflection JSON
RawNode = Dict[str, Any]
DeclarationIndex = Dict[int, RawNode]


class _Record(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    def to_dict(self) -> dict[str, Any]:
        # Absent fields stay absent: nothing is rendered as null.
        return self.model_dump(by_alias=True, exclude_none=True)


class Comment(_Record):
    # Extra keys (tags, returns, ...) are carried through untouched.
    model_config = ConfigDict(populate_by_name=True, extra="allow")

    short_text: Optional[str] = Field(default=None, alias="shortText")
    text: Optional[str] = None


# ---------------------------------------------------------------------------
# Type algebra
# ---------------------------------------------------------------------------


class IntrinsicType(_Record):
    type: Literal["intrinsic"] = "intrinsic"
    name: Optional[str] = None
    comment: Optional[Comment] = None


class Member(_Record):
    name: Optional[str] = None
    comment: Optional[Comment] = None
    is_optional: Optional[bool] = Field(default=None, alias="isOptional")
    type: Optional["TypeValue"] = None


class Property(Member):
    pass


class Parameter(Member):
    pass


class ObjectType(_Record):
    type: Literal["customObject"] = "customObject"
    name: str
    comment: Optional[Comment] = None
    properties: List[Property] = Field(default_factory=list)


class UnionType(_Record):
    """Named union alias. Members are not decomposed."""

    type: Literal["customUnion"] = "customUnion"
    name: str
    comment: Optional[Comment] = None


CustomType = Annotated[Union[ObjectType, UnionType], Field(discriminator="type")]

# `str` is the display placeholder produced for indexed access, e.g. "Bar['foo']".
TypeValue = Union[
    Annotated[
        Union[IntrinsicType, ObjectType, UnionType], Field(discriminator="type")
    ],
    str,
]

Member.model_rebuild()
Property.model_rebuild()
Parameter.model_rebuild()
ObjectType.model_rebuild()


# ---------------------------------------------------------------------------
# Per-module output
# ---------------------------------------------------------------------------


class ReturnType(_Record):
    type: Optional[TypeValue] = None


class Signature(_Record):
    name: str  # fully-qualified reference, e.g. "client.Client.constructor"
    comment: Optional[Comment] = None
    params: List[Parameter] = Field(default_factory=list)
    ret: Optional[ReturnType] = None


class ModuleTypes(_Record):
    name: Optional[str] = None
    methods: Dict[str, Signature] = Field(default_factory=dict)
    types: Dict[str, CustomType] = Field(default_factory=dict)


_module_list = TypeAdapter(List[ModuleTypes])


def dump_modules(modules: List[ModuleTypes], indent: Optional[int] = None) -> str:
    return _module_list.dump_json(
        modules, by_alias=True, exclude_none=True, indent=indent
    ).decode("utf-8")


def load_modules(payload: Union[str, bytes]) -> List[ModuleTypes]:
    return _module_list.validate_json(payload)
