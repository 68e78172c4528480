"""Grouping of a post's flat comment list into conversation threads.

A thread is the conversation between one participant and the post author.
Its identity is the thread key, a pure function of (post, participant):

    user_<user_id>_post_<post_id>
    anon_<anonymous_id>_post_<post_id>

Threads are never stored; they are rebuilt from the comments on every read.
"""
import re
from typing import Dict, Iterable, List, Optional, Tuple

from quietpost.models.comment import Comment
from quietpost.schemas.comment_schema import CommentRead, Thread
from quietpost.schemas.participant_schema import Participant

THREAD_KEY_PATTERN = re.compile(r"^(user|anon)_([A-Za-z0-9-]+)_post_(\d+)$")


def build_thread_key(post_id: int, participant: Participant) -> str:
    prefix = "anon" if participant.is_anonymous else "user"
    return f"{prefix}_{participant.identifier}_post_{post_id}"


def parse_thread_key(thread_key: str) -> Tuple[Participant, int]:
    """Split a thread key back into its participant and post id.

    Raises ValueError for anything ``build_thread_key`` could not have produced.
    """
    match = THREAD_KEY_PATTERN.match(thread_key or "")
    if not match:
        raise ValueError(f"Malformed thread key: {thread_key!r}")
    kind, identifier, post_id = match.groups()
    if kind == "anon":
        participant = Participant.anonymous(identifier)
    else:
        participant = Participant.user(identifier)
    return participant, int(post_id)


def participant_of(comment: Comment) -> Participant:
    if comment.anonymous_id is not None:
        return Participant.anonymous(comment.anonymous_id)
    return Participant.user(comment.user_id)


def partition_comments(comments: Iterable[Comment]) -> Dict[str, List[Comment]]:
    """Group comments by thread key.

    Grouping is stable: each group keeps the order the comments arrived in,
    and groups appear in the order their first comment arrived.
    """
    groups: Dict[str, List[Comment]] = {}
    for comment in comments:
        groups.setdefault(comment.thread_identifier, []).append(comment)
    return groups


def count_participant_comments(comments: Iterable[Comment], participant: Participant) -> int:
    """Number of non-author comments written by ``participant``"""
    return sum(
        1 for comment in comments
        if not comment.is_author_reply and participant_of(comment) == participant
    )


def build_threads(
    post_id: int,
    comments: Iterable[Comment],
    viewer: Optional[Participant] = None,
    author_id: Optional[str] = None,
    quota: int = 3
) -> List[Thread]:
    """Build the ordered thread views of a post for one viewer.

    ``comments`` are expected oldest first, as the store returns them.
    Threads are ordered by their first comment, oldest conversation first.

    The viewer may reply in their own thread while they still have quota
    left, since messages there go through add_comment. The post author may
    reply in every other thread; author replies are not limited. The
    author's own thread follows the quota like anyone else's.
    """
    viewer_key = build_thread_key(post_id, viewer) if viewer is not None else None
    viewer_is_author = (
        viewer is not None
        and not viewer.is_anonymous
        and author_id is not None
        and viewer.user_id == author_id
    )

    threads: List[Thread] = []
    for thread_key, thread_comments in partition_comments(comments).items():
        reply_count = count_participant_comments(thread_comments, viewer) if viewer is not None else 0

        if viewer is None:
            can_reply = False
        elif thread_key == viewer_key:
            can_reply = reply_count < quota
        else:
            can_reply = viewer_is_author

        threads.append(Thread(
            thread_key=thread_key,
            comments=[CommentRead.model_validate(c) for c in thread_comments],
            viewer_can_reply=can_reply,
            viewer_reply_count=reply_count,
            last_activity=thread_comments[-1].created_at
        ))

    # sort() is stable, so threads starting at the same instant keep arrival order
    threads.sort(key=lambda thread: thread.comments[0].created_at)
    return threads
