"""
Input validation for catalog records.

Malformed posts are rejected as a batch before ranking starts; nothing is
silently dropped.
"""

from typing import Any, Iterable, List, Mapping, Union

from pydantic import ValidationError

from .errors import InvalidInputError
from .models import Post, PostId


def post_id_sort_key(post_id: PostId) -> tuple:
    """Total order over mixed int/str ids: integers first (numerically), then strings."""
    if isinstance(post_id, int) and not isinstance(post_id, bool):
        return (0, post_id, "")
    return (1, 0, str(post_id))


def parse_posts(records: Iterable[Union[Post, Mapping[str, Any]]]) -> List[Post]:
    """Turn raw catalog records into validated posts.

    Args:
        records: Post instances or dicts using either snake_case or the
            catalog's camelCase field names

    Returns:
        List of validated posts in input order

    Raises:
        InvalidInputError: if any record is malformed or ids repeat
    """
    posts: List[Post] = []
    problems: List[str] = []
    for index, record in enumerate(records):
        if isinstance(record, Post):
            posts.append(record)
            continue
        if not isinstance(record, Mapping):
            problems.append(f"record {index}: expected an object, got {type(record).__name__}")
            continue
        try:
            posts.append(Post.model_validate(dict(record)))
        except ValidationError as exc:
            for err in exc.errors():
                location = ".".join(str(part) for part in err.get("loc", ())) or "record"
                problems.append(f"record {index}: {location}: {err.get('msg')}")

    if problems:
        raise InvalidInputError(f"{len(problems)} malformed post field(s)", problems)

    ensure_unique_ids(post.id for post in posts)
    return posts


def ensure_unique_ids(post_ids: Iterable[PostId]) -> None:
    """Raise InvalidInputError when the same id appears twice."""
    seen = set()
    duplicates = []
    for post_id in post_ids:
        if post_id in seen:
            duplicates.append(post_id)
        seen.add(post_id)
    if duplicates:
        raise InvalidInputError(
            "duplicate post ids",
            [f"duplicate id: {post_id!r}" for post_id in duplicates],
        )
