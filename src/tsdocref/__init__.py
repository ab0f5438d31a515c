from tsdocref.index import build_declaration_index
from tsdocref.modules import parse_module, parse_type_spec
from tsdocref.spec import TypeSpec
from tsdocref.types import parse_type
