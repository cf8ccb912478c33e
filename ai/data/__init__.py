# AI Data Module
from .knowledge_base import (
    CATEGORY_KEYWORDS,
    CONDITION_TIERS,
    COLOR_KEYWORDS,
    MATERIAL_KEYWORDS,
    STYLE_KEYWORDS,
    DEFAULT_CONDITION,
    DEFAULT_COLOR,
    DEFAULT_MATERIAL,
    DEFAULT_STYLE,
    # Core functions
    normalize_labels,
    find_category,
    find_condition,
    find_keyword,
    get_all_keywords,
)

__all__ = [
    'CATEGORY_KEYWORDS',
    'CONDITION_TIERS',
    'COLOR_KEYWORDS',
    'MATERIAL_KEYWORDS',
    'STYLE_KEYWORDS',
    'DEFAULT_CONDITION',
    'DEFAULT_COLOR',
    'DEFAULT_MATERIAL',
    'DEFAULT_STYLE',
    # Core functions
    'normalize_labels',
    'find_category',
    'find_condition',
    'find_keyword',
    'get_all_keywords',
]
