"""
文章 slug 生成
"""
import re


SLUG_MAX_LENGTH = 100
FALLBACK_SLUG = "article"

_NON_WORD = re.compile(r"[^\w\s-]", re.ASCII)
_WHITESPACE = re.compile(r"\s+")
_HYPHENS = re.compile(r"-+")


def slugify(title: str) -> str:
    """由标题生成 slug：小写、去掉非单词字符、空白转连字符、截断到 100 个字符

    >>> slugify("Hello World!")
    'hello-world'
    """
    slug = _NON_WORD.sub("", (title or "").lower())
    slug = _WHITESPACE.sub("-", slug.strip())
    slug = _HYPHENS.sub("-", slug).strip("-")
    slug = slug[:SLUG_MAX_LENGTH].rstrip("-")
    return slug or FALLBACK_SLUG


def with_suffix(base: str, counter: int) -> str:
    """冲突时追加数字后缀：base-1, base-2, ..."""
    if counter <= 0:
        return base
    return f"{base}-{counter}"
