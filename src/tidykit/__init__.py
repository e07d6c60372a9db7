"""tidykit -- Template-driven conversion of irregular spreadsheet grids to tidy tables.

Public API exports for grids, templates, the match engine and its outputs.
"""

from tidykit.areas import AreaCell, AreaInfo, CellContext, ContextCell, Rect
from tidykit.builder import TreeBuilder
from tidykit.config import BranchErrorPolicy, TidyConfig
from tidykit.constraints import check_value, evaluate_constraints
from tidykit.engine import TidyEngine, TidyResult, tidy
from tidykit.errors import (
    OutOfBoundsError,
    TemplateValidationError,
    TidyError,
    TidyErrorCode,
    TidyException,
    TraversalOverflowError,
)
from tidykit.grid import CellValue, Grid
from tidykit.matcher import AreaMatcher, compute_size
from tidykit.models import (
    CELL_VALUE,
    CONTEXT,
    TO_PARENT_X,
    TO_PARENT_Y,
    CellConstraint,
    CellSelection,
    Computed,
    ContextPosition,
    ContextTransform,
    Direction,
    Equals,
    ReferenceCorner,
    ReferenceLayer,
    Size,
    TableTemplate,
    Transform,
    TransformKind,
    Traverse,
    ValueType,
    fill_template_defaults,
)
from tidykit.output import (
    CellRef,
    MatchNode,
    TidyRow,
    TidyTable,
    assemble_table,
    build_match_tree,
    match_tree_to_dicts,
)
from tidykit.resolver import Frames, resolve_position
from tidykit.rules import RuleRegistry, load_templates
from tidykit.tiler import Tiler
from tidykit.transform import TransformEngine
from tidykit.validation import validate_templates

__all__: list[str] = [
    # Errors and config
    "TidyErrorCode",
    "TidyError",
    "TidyException",
    "TemplateValidationError",
    "OutOfBoundsError",
    "TraversalOverflowError",
    "TidyConfig",
    "BranchErrorPolicy",
    # Grid
    "Grid",
    "CellValue",
    # Template models
    "ReferenceLayer",
    "ReferenceCorner",
    "Direction",
    "ValueType",
    "ContextPosition",
    "TransformKind",
    "Computed",
    "Equals",
    "CellSelection",
    "CellConstraint",
    "Size",
    "Traverse",
    "ContextTransform",
    "Transform",
    "TableTemplate",
    "TO_PARENT_X",
    "TO_PARENT_Y",
    "CELL_VALUE",
    "CONTEXT",
    "fill_template_defaults",
    # Rules
    "RuleRegistry",
    "load_templates",
    # Match tree
    "AreaInfo",
    "AreaCell",
    "Rect",
    "CellContext",
    "ContextCell",
    # Components
    "Frames",
    "resolve_position",
    "check_value",
    "evaluate_constraints",
    "AreaMatcher",
    "compute_size",
    "Tiler",
    "TransformEngine",
    "TreeBuilder",
    "validate_templates",
    # Output
    "CellRef",
    "TidyRow",
    "TidyTable",
    "MatchNode",
    "assemble_table",
    "build_match_tree",
    "match_tree_to_dicts",
    # Engine
    "TidyEngine",
    "TidyResult",
    "tidy",
]
