"""
标题规范化

所有函数都是纯函数，对任意字符串（包括空串）都有定义，且多次调用结果不变。
"""

import re
from typing import List

_NON_ALNUM = re.compile(r"[^\w\s]|_")
_WHITESPACE = re.compile(r"\s+")

LEADING_ARTICLES = ("the", "a", "an")
MIN_SIGNIFICANT_WORD_LENGTH = 3


def normalize(title: str) -> str:
    """转小写、去掉非字母数字字符、合并空白并去除首尾空白"""
    if not title:
        return ""
    lowered = title.lower()
    stripped = _NON_ALNUM.sub("", lowered)
    return _WHITESPACE.sub(" ", stripped).strip()


def strip_articles(title: str) -> str:
    """去掉开头的一个冠词（the / a / an）"""
    normalized = normalize(title)
    head, _, rest = normalized.partition(" ")
    if head in LEADING_ARTICLES and rest:
        return rest
    return normalized


def significant_words(title: str) -> List[str]:
    """规范化后长度大于 2 的词，保留原顺序"""
    return [word for word in normalize(title).split(" ") if len(word) >= MIN_SIGNIFICANT_WORD_LENGTH]
