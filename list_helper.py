"""Aggregations over an in-memory list of blogs.

Each blog is a mapping with at least ``title``, ``author`` and ``likes``.
Where several entries share the maximum, the one seen first wins.
"""
from typing import Any, Dict, Iterable, Mapping, Optional

Blog = Mapping[str, Any]


def total_likes(blogs: Iterable[Blog]) -> int:
    return sum(blog.get("likes", 0) for blog in blogs)


def favorite_blog(blogs: Iterable[Blog]) -> Optional[Dict[str, Any]]:
    favorite = None
    for blog in blogs:
        if favorite is None or blog.get("likes", 0) > favorite.get("likes", 0):
            favorite = blog
    if favorite is None:
        return None
    return {
        "title": favorite.get("title"),
        "author": favorite.get("author"),
        "likes": favorite.get("likes", 0),
    }


def _top_author(totals: Dict[Any, int]) -> Any:
    # max() keeps the first maximal key; dicts iterate in first-seen order
    return max(totals, key=totals.get)


def most_blogs(blogs: Iterable[Blog]) -> Optional[Dict[str, Any]]:
    counts: Dict[Any, int] = {}
    for blog in blogs:
        author = blog.get("author")
        counts[author] = counts.get(author, 0) + 1

    if not counts:
        return None
    top = _top_author(counts)
    return {"author": top, "blogs": counts[top]}


def most_likes(blogs: Iterable[Blog]) -> Optional[Dict[str, Any]]:
    likes: Dict[Any, int] = {}
    for blog in blogs:
        author = blog.get("author")
        likes[author] = likes.get(author, 0) + blog.get("likes", 0)

    if not likes:
        return None
    top = _top_author(likes)
    return {"author": top, "likes": likes[top]}
