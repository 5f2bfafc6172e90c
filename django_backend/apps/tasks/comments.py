"""
Comment store. Every operation first resolves the task for the requester,
so task (and project) access rules apply to comments unchanged. Only a
comment's author may change or remove it.
"""
import logging

from apps.common.db import get_or_none, same_id
from apps.common.errors import NotFound, PermissionDenied
from apps.tasks.models import TaskComment
from apps.tasks.services import get_task
from apps.users.services import get_user

logger = logging.getLogger(__name__)

DEFAULT_PAGE_SIZE = 10


def with_author(comment: TaskComment) -> TaskComment:
    """Attach the author as ``author``; a vanished author leaves it as None"""
    try:
        comment.author = get_user(comment.user_id)
    except NotFound:
        logger.warning(f"Author {comment.user_id} not found for comment {comment.id}")
        comment.author = None
    return comment


def list_task_comments(task_id, requester_id, limit: int = DEFAULT_PAGE_SIZE):
    task = get_task(task_id, requester_id)
    comments = TaskComment.objects.filter(task_id=task.id).order_by("-created_at")[:limit]
    return [with_author(comment) for comment in comments]


def list_task_comments_truncated(task_id, requester_id):
    comments = list_task_comments(task_id, requester_id, DEFAULT_PAGE_SIZE + 1)
    has_more = len(comments) > DEFAULT_PAGE_SIZE
    return {
        "comments": comments[:DEFAULT_PAGE_SIZE],
        "has_more": has_more,
    }


def create_comment(task_id, content: str, requester_id) -> TaskComment:
    task = get_task(task_id, requester_id)
    comment = TaskComment.objects.create(task_id=task.id, user_id=requester_id, content=content.strip())
    logger.info(f"Comment {comment.id} added to task {task.id} by {requester_id}")
    return with_author(comment)


def get_comment(comment_id, requester_id) -> TaskComment:
    comment = get_or_none(TaskComment, pk=comment_id)
    if comment is None:
        raise NotFound("Comment not found")
    get_task(comment.task_id, requester_id)
    return comment


def update_comment(comment_id, content: str, requester_id) -> TaskComment:
    comment = get_comment(comment_id, requester_id)
    if not same_id(comment.user_id, requester_id):
        raise PermissionDenied("You can only update your own comments")

    comment.content = content.strip()
    comment.save(update_fields=["content", "updated_at"])
    return with_author(comment)


def delete_comment(comment_id, requester_id) -> None:
    comment = get_comment(comment_id, requester_id)
    if not same_id(comment.user_id, requester_id):
        raise PermissionDenied("You can only delete your own comments")

    comment.delete()
    logger.info(f"Comment {comment_id} deleted by {requester_id}")
