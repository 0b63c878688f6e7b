"""Seed category rules for the Smartstore taxonomy.

Each entry maps keyword triggers and regex patterns to a marketplace
category plus the product attributes the marketplace requires for it.
"""
from listing_optimizer.models import AttributeType, CategoryAttribute, CategoryRule

T, N, S, B = AttributeType.TEXT, AttributeType.NUMBER, AttributeType.SELECT, AttributeType.BOOLEAN


# ── Rule Table ─────────────────────────────────────────────

CATEGORY_RULES = [
    # 의류
    {
        "category_name": "남성의류",
        "keywords": ["남성", "남자", "맨즈", "셔츠", "바지", "정장", "캐주얼"],
        "patterns": ["남[성자]", "맨즈", "정장", "셔츠"],
        "weight": 1.0,
        "confidence": 85,
        "reason": "남성 의류 관련 키워드가 포함됨",
        "attributes": [
            ("사이즈", S, True, ["S", "M", "L", "XL", "XXL"], None),
            ("소재", T, True, None, "예: 면 100%"),
            ("색상", T, True, None, "예: 블랙, 네이비"),
            ("시즌", S, False, ["봄/가을", "여름", "겨울", "사계절"], None),
        ],
    },
    {
        "category_name": "여성의류",
        "keywords": ["여성", "여자", "레이디", "원피스", "블라우스", "스커트", "드레스"],
        "patterns": ["여[성자]", "레이디", "원피스", "블라우스"],
        "weight": 1.0,
        "confidence": 85,
        "reason": "여성 의류 관련 키워드가 포함됨",
        "attributes": [
            ("사이즈", S, True, ["XS", "S", "M", "L", "XL"], None),
            ("소재", T, True, None, "예: 폴리에스터 100%"),
            ("색상", T, True, None, "예: 핑크, 화이트"),
            ("스타일", S, False, ["캐주얼", "오피스", "파티", "데일리"], None),
        ],
    },
    # 전자제품
    {
        "category_name": "스마트폰/태블릿",
        "keywords": ["스마트폰", "폰", "아이폰", "갤럭시", "태블릿", "아이패드"],
        "patterns": ["스마트폰", "아이폰", "갤럭시", "태블릿"],
        "weight": 1.0,
        "confidence": 90,
        "reason": "모바일 디바이스 관련 키워드가 포함됨",
        "attributes": [
            ("브랜드", S, True, ["삼성", "애플", "LG", "기타"], None),
            ("모델명", T, True, None, "예: Galaxy S24"),
            ("저장용량", S, True, ["64GB", "128GB", "256GB", "512GB", "1TB"], None),
            ("색상", T, True, None, "예: 미드나이트 블랙"),
            ("A/S 기간", T, False, None, "예: 1년"),
        ],
    },
    {
        "category_name": "컴퓨터/노트북",
        "keywords": ["컴퓨터", "노트북", "랩톱", "PC", "데스크톱", "게이밍"],
        "patterns": ["노트북", "랩톱", "PC", "게이밍"],
        "weight": 1.0,
        "confidence": 88,
        "reason": "컴퓨터 관련 키워드가 포함됨",
        "attributes": [
            ("CPU", T, True, None, "예: Intel i7-12700H"),
            ("RAM", S, True, ["8GB", "16GB", "32GB", "64GB"], None),
            ("저장장치", T, True, None, "예: SSD 512GB"),
            ("OS", S, True, ["Windows 11", "macOS", "Chrome OS", "Linux"], None),
            ("화면크기", N, False, None, "예: 15.6 (인치)"),
        ],
    },
    # 식품
    {
        "category_name": "신선식품",
        "keywords": ["신선", "과일", "채소", "고기", "생선", "유기농", "국산"],
        "patterns": ["신선", "과일", "채소", "유기농"],
        "weight": 1.0,
        "confidence": 80,
        "reason": "신선식품 관련 키워드가 포함됨",
        "attributes": [
            ("원산지", T, True, None, "예: 국산"),
            ("보관방법", S, True, ["냉장", "냉동", "실온", "건조"], None),
            ("유통기한", T, True, None, "예: 제조일로부터 7일"),
            ("중량/용량", T, True, None, "예: 1kg"),
            ("등급", S, False, ["특", "상", "보통"], None),
        ],
    },
    {
        "category_name": "가공식품",
        "keywords": ["라면", "과자", "음료", "커피", "차", "즉석", "냉동"],
        "patterns": ["라면", "과자", "음료", "즉석", "냉동"],
        "weight": 1.0,
        "confidence": 82,
        "reason": "가공식품 관련 키워드가 포함됨",
        "attributes": [
            ("제조사", T, True, None, "예: 농심"),
            ("용량", T, True, None, "예: 120g"),
            ("유통기한", T, True, None, "예: 제조일로부터 6개월"),
            ("알레르기 정보", T, False, None, "예: 밀, 대두 함유"),
            ("보관방법", S, True, ["실온", "냉장", "냉동"], None),
        ],
    },
    # 뷰티
    {
        "category_name": "스킨케어",
        "keywords": ["스킨케어", "화장품", "로션", "크림", "세럼", "토너", "클렌징"],
        "patterns": ["스킨케어", "로션", "크림", "세럼"],
        "weight": 1.0,
        "confidence": 87,
        "reason": "스킨케어 제품 관련 키워드가 포함됨",
        "attributes": [
            ("브랜드", T, True, None, "예: 설화수"),
            ("용량", T, True, None, "예: 150ml"),
            ("피부타입", S, True, ["모든피부", "건성", "지성", "복합성", "민감성"], None),
            ("주요성분", T, False, None, "예: 히알루론산, 나이아신아마이드"),
            ("사용법", T, False, None, "예: 아침/저녁 세안 후 사용"),
        ],
    },
    # 생활용품
    {
        "category_name": "청소/세탁용품",
        "keywords": ["세제", "청소", "세탁", "섬유유연제", "표백제", "클리너"],
        "patterns": ["세제", "청소", "세탁", "클리너"],
        "weight": 1.0,
        "confidence": 85,
        "reason": "청소/세탁용품 관련 키워드가 포함됨",
        "attributes": [
            ("용도", S, True, ["의류세탁", "주방청소", "화장실청소", "다목적"], None),
            ("용량", T, True, None, "예: 2.5L"),
            ("성분", T, False, None, "예: 계면활성제, 효소"),
            ("향", S, False, ["무향", "라벤더", "시트러스", "기타"], None),
        ],
    },
    # 스포츠/레저
    {
        "category_name": "운동용품",
        "keywords": ["운동", "헬스", "요가", "런닝", "피트니스", "덤벨", "매트"],
        "patterns": ["운동", "헬스", "요가", "피트니스"],
        "weight": 1.0,
        "confidence": 83,
        "reason": "운동용품 관련 키워드가 포함됨",
        "attributes": [
            ("운동종목", S, True, ["헬스", "요가", "필라테스", "러닝", "기타"], None),
            ("소재", T, True, None, "예: 천연고무, 스테인리스스틸"),
            ("크기/중량", T, True, None, "예: 5kg, 183cm"),
            ("사용법", T, False, None, "사용 방법 및 주의사항"),
        ],
    },
    # 반려동물
    {
        "category_name": "반려동물용품",
        "keywords": ["강아지", "고양이", "반려동물", "사료", "간식", "장난감", "용품"],
        "patterns": ["강아지", "고양이", "반려동물", "사료"],
        "weight": 1.0,
        "confidence": 86,
        "reason": "반려동물용품 관련 키워드가 포함됨",
        "attributes": [
            ("대상동물", S, True, ["강아지", "고양이", "공통"], None),
            ("연령대", S, True, ["퍼피/키튼", "어덜트", "시니어", "전연령"], None),
            ("크기", S, False, ["소형견", "중형견", "대형견", "모든크기"], None),
            ("주요기능", T, False, None, "예: 치석제거, 면역력강화"),
            ("유기농 인증", B, False, None, None),
        ],
    },
]


def build_rule(data: dict) -> CategoryRule:
    """Build a CategoryRule from a table entry.

    Attributes may be given as ``(name, type, required, options, placeholder)``
    tuples or as dicts with those keys.
    """
    attributes = []
    for attr in data.get("attributes", []):
        if isinstance(attr, dict):
            attributes.append(CategoryAttribute(
                name=attr["name"],
                type=AttributeType(attr.get("type", "text")),
                required=bool(attr.get("required", False)),
                options=attr.get("options"),
                placeholder=attr.get("placeholder"),
            ))
        else:
            name, typ, required, options, placeholder = attr
            attributes.append(CategoryAttribute(
                name=name, type=typ, required=required,
                options=list(options) if options else None,
                placeholder=placeholder,
            ))
    return CategoryRule(
        category_name=data["category_name"],
        keywords=list(data.get("keywords", [])),
        patterns=list(data.get("patterns", [])),
        weight=float(data.get("weight", 1.0)),
        confidence=float(data.get("confidence", 80)),
        reason=data.get("reason", ""),
        attributes=attributes,
    )


def default_rules() -> list[CategoryRule]:
    """Fresh copies of the seed rules."""
    return [build_rule(r) for r in CATEGORY_RULES]
