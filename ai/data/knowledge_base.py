"""
Furniture Knowledge Base

라벨 → 가구 속성 매핑용 정적 규칙 테이블

ClassificationEngine이 사용하는 키워드 테이블:
- CATEGORY_KEYWORDS: 카테고리별 키워드 (순서 = 우선순위)
- CONDITION_TIERS: 상태 등급별 키워드 (excellent → good → fair → poor)
- COLOR/MATERIAL/STYLE_KEYWORDS: 메타데이터 키워드

dict는 삽입 순서를 보장하므로 선언 순서가 곧 매칭 우선순위입니다.
"""

from typing import Optional, List, Dict


# =============================================================================
# Category Database
# =============================================================================

CATEGORY_KEYWORDS: Dict[str, List[str]] = {
    "chair": ["chair", "seat", "stool"],
    "table": ["table", "desk", "surface"],
    "sofa": ["sofa", "couch", "loveseat"],
    "bed": ["bed", "mattress", "bedframe"],
    "storage": ["cabinet", "drawer", "shelf"],
}


# =============================================================================
# Condition Tiers
# =============================================================================

CONDITION_TIERS: Dict[str, List[str]] = {
    "excellent": ["new", "pristine", "perfect"],
    "good": ["clean", "solid", "stable"],
    "fair": ["used", "worn", "scratched"],
    "poor": ["damaged", "broken", "stained"],
}


# =============================================================================
# Metadata Keywords
# =============================================================================

COLOR_KEYWORDS: List[str] = ["brown", "black", "white", "gray", "blue", "red"]
MATERIAL_KEYWORDS: List[str] = ["wood", "metal", "fabric", "leather", "plastic"]
STYLE_KEYWORDS: List[str] = ["modern", "traditional", "rustic", "industrial"]


# 규칙 미매칭 시 기본값 (null 대신 항상 값을 채움)
DEFAULT_CONDITION = "good"
DEFAULT_COLOR = "unknown"
DEFAULT_MATERIAL = "unknown"
DEFAULT_STYLE = "modern"


# =============================================================================
# Helper Functions
# =============================================================================

def normalize_labels(labels: List[str]) -> List[str]:
    """
    라벨을 소문자로 정규화합니다 (순서 유지).

    Args:
        labels: 원본 라벨 리스트 (예: ["Chair", "Wood"])

    Returns:
        소문자 라벨 리스트 (예: ["chair", "wood"])
    """
    return [label.lower() for label in labels]


def find_category(labels: List[str]) -> Optional[str]:
    """
    라벨 목록에서 첫 번째로 매칭되는 카테고리를 찾습니다.

    Args:
        labels: 소문자 라벨 리스트

    Returns:
        카테고리 키 또는 None (매칭 없음)
    """
    for category, keywords in CATEGORY_KEYWORDS.items():
        if any(keyword in labels for keyword in keywords):
            return category
    return None


def find_condition(labels: List[str]) -> Optional[str]:
    """
    상태 등급 키워드를 높은 등급부터 순서대로 검사합니다.

    Args:
        labels: 소문자 라벨 리스트

    Returns:
        상태 등급 또는 None
    """
    for condition, indicators in CONDITION_TIERS.items():
        if any(indicator in labels for indicator in indicators):
            return condition
    return None


def find_keyword(labels: List[str], keywords: List[str]) -> Optional[str]:
    """키워드 리스트 순서대로 라벨에 포함된 첫 항목 반환"""
    for keyword in keywords:
        if keyword in labels:
            return keyword
    return None


def get_all_keywords() -> List[str]:
    """
    모든 테이블의 키워드 목록을 반환합니다.

    Returns:
        중복 없는 키워드 리스트 (선언 순서)
    """
    keywords = []
    for group in CATEGORY_KEYWORDS.values():
        keywords.extend(group)
    for group in CONDITION_TIERS.values():
        keywords.extend(group)
    keywords.extend(COLOR_KEYWORDS)
    keywords.extend(MATERIAL_KEYWORDS)
    keywords.extend(STYLE_KEYWORDS)
    return list(dict.fromkeys(keywords))
