"""
商城搜索结果打分

商城按关键词搜索会返回大量配件、扩展和同名的其他商品，这里按标题吻合度、
桌游特征词、出版商、价格区间等给每个候选商品打分，只接受足够可信的结果。
"""

import re
from dataclasses import dataclass, field
from typing import List, Optional, Sequence

COMMON_WORDS = {
    "the", "and", "or", "of", "to", "a", "an", "in", "on", "at", "by", "for",
    "with", "from", "game", "board", "card", "edition", "new", "original",
}
PUBLISHER_WORDS = {
    "games", "entertainment", "studios", "publishing", "press", "company",
    "asmodee", "hasbro", "mattel", "ravensburger", "kosmos",
}
BOARD_GAME_DESCRIPTORS = {
    "board", "game", "boardgame", "strategy", "tabletop", "card", "classic",
    "award", "winning", "players", "edition", "deluxe", "reiner", "knizia",
}
BOARD_GAME_INDICATORS = ("board game", "boardgame", "tabletop", "strategy game", "card game")
KNOWN_PUBLISHERS = (
    "asmodee", "stonemaier", "cephalofair", "fantasy flight", "z-man",
    "renegade", "restoration games", "plan b", "repos production",
    "ravensburger", "kosmos", "lookout games", "rio grande",
    "portal games", "czech games", "space cowboys", "iello",
    "alderac", "aeg", "stronghold", "tasty minstrel", "bezier",
)
NEGATIVE_INDICATORS = (
    "expansion", "sleeve", "sleeves", "dice", "token", "tokens",
    "mat", "playmat", "organizer", "insert", "upgrade", "accessory",
    "miniature", "mini", "figure", "figurine", "card sleeves",
    "storage", "box", "case", "bag", "component",
)
SUSPICIOUS_PATTERNS = (
    "tv show", "television", "movie", "film",
    "bible", "felt board", "educational",
    "teen titans", "office", "skyjo", "tapple",
    "azul", "wingspan", "pandemic",
)

REASONABLE_PRICE = (15.0, 200.0)
MIN_SCORE_SHORT_TITLE = 75
MIN_SCORE = 150
SHORT_TITLE_WORDS = 2

_PUNCTUATION = re.compile(r"[^\w\s]")


@dataclass
class MarketplaceProduct:
    """商城搜索结果中的一个商品"""
    title: str
    url: str
    price: Optional[float] = None
    currency: str = "USD"
    asin: Optional[str] = None
    image_url: Optional[str] = None
    rating: Optional[float] = None
    review_count: Optional[int] = None
    prime: bool = False


@dataclass
class ScoredProduct:
    product: MarketplaceProduct
    score: int
    details: List[str] = field(default_factory=list)


def tokenize(title: str) -> List[str]:
    """转小写，标点替换为空格后按空白切分"""
    return _PUNCTUATION.sub(" ", (title or "").lower()).split()


def _contains_phrase(text: str, phrase: str) -> bool:
    return re.search(rf"\b{re.escape(phrase)}\b", text) is not None


def score_product(game_title: str, product: MarketplaceProduct) -> ScoredProduct:
    """
    计算单个商品与游戏标题的吻合分

    Args:
        game_title: 游戏库中的标题
        product: 商城商品

    Returns:
        ScoredProduct，details 记录每一项加减分的原因
    """
    game_words = tokenize(game_title)
    product_words = tokenize(product.title)
    product_title = " ".join(product_words)
    game_phrase = " ".join(game_words)
    score = 0
    details: List[str] = []

    # 标题完整出现
    if len(game_words) == 1:
        word = re.escape(game_words[0])
        exact = re.match(rf"{word}\b", product_title) is not None
    else:
        exact = bool(game_phrase) and _contains_phrase(product_title, game_phrase)
    if exact:
        score += 200
        details.append("exact-title-match")
    else:
        score -= 100
        details.append("no-exact-match")

    # 核心词
    is_short = len(game_words) <= SHORT_TITLE_WORDS
    significant = [
        word for word in game_words
        if (len(word) > 2 or is_short)
        and word not in COMMON_WORDS
        and word not in PUBLISHER_WORDS
        and word not in BOARD_GAME_DESCRIPTORS
    ]
    found = 0
    exact_found = 0
    for word in significant:
        if word in product_words:
            found += 1
            exact_found += 1
            score += 25
        elif any(len(pw) > 4 and len(word) > 4 and (word in pw or pw in word) for pw in product_words):
            found += 1
            score += 10

    word_ratio = found / len(significant) if significant else 1.0
    required_ratio = 0.5 if is_short else 1.0
    if word_ratio < required_ratio:
        score -= 100 if is_short else 200
        details.append(f"missing-words-{round((1 - word_ratio) * 100)}%")

    if significant and exact_found / len(significant) >= 0.8:
        score += 50
        details.append("mostly-exact-matches")

    # 桌游特征词
    if any(indicator in product_title for indicator in BOARD_GAME_INDICATORS):
        score += 30
        details.append("board-game-indicator")
    else:
        score -= 50
        details.append("no-board-game-indicator")

    lower_raw = (product.title or "").lower()
    if any(publisher in lower_raw for publisher in KNOWN_PUBLISHERS):
        score += 30
        details.append("known-publisher")

    # 价格区间
    if product.price:
        low, high = REASONABLE_PRICE
        if low <= product.price <= high:
            score += 20
            details.append("reasonable-price")
        elif product.price < low:
            score -= 50
            details.append("too-cheap")
        else:
            score -= 20
            details.append("expensive")
    else:
        score -= 30
        details.append("no-price")

    # 配件与扩展（游戏标题自身包含的词不算）
    for indicator in NEGATIVE_INDICATORS:
        if _contains_phrase(product_title, indicator) and not _contains_phrase(game_phrase, indicator):
            score -= 100
            details.append(f"negative-{indicator}")

    # 明显是其他商品
    for pattern in SUSPICIOUS_PATTERNS:
        if _contains_phrase(product_title, pattern) and pattern not in game_phrase:
            score -= 150
            details.append(f"suspicious-{pattern}")

    if product.rating and product.rating >= 4.0:
        score += 5
    if product.review_count and product.review_count >= 50:
        score += 5
    if product.prime:
        score += 3

    return ScoredProduct(product, score, details)


def select_best_product(game_title: str, products: Sequence[MarketplaceProduct]) -> Optional[MarketplaceProduct]:
    """
    选出最可信的商品

    短标题（不超过两个词）门槛为 75 分，其余为 150 分；没有价格的商品不接受。
    """
    priced = [product for product in products if product.price]
    if not priced:
        return None

    best = max((score_product(game_title, product) for product in priced), key=lambda s: s.score)
    minimum = MIN_SCORE_SHORT_TITLE if len(tokenize(game_title)) <= SHORT_TITLE_WORDS else MIN_SCORE
    if best.score >= minimum:
        return best.product
    return None
