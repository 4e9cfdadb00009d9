class CommentError(Exception):
    """Base exception for comment-related errors."""

    pass


class NotFoundError(CommentError):
    """Exception raised when a referenced post or comment does not exist."""

    pass


class PostNotFoundError(NotFoundError):
    """Exception raised when the owning post is not found."""

    def __init__(self, post_id: int):
        super().__init__(f"Post {post_id} not found")
        self.post_id = post_id


class CommentNotFoundError(NotFoundError):
    """Exception raised when a comment is not found."""

    def __init__(self, comment_id: int):
        super().__init__(f"Comment {comment_id} not found")
        self.comment_id = comment_id


class ParentCommentNotFoundError(NotFoundError):
    """Exception raised when a reply targets a missing parent comment."""

    def __init__(self, parent_id: int, post_id: int):
        super().__init__(
            f"Parent comment {parent_id} not found or doesn't belong to post {post_id}"
        )
        self.parent_id = parent_id
        self.post_id = post_id


class CommentValidationError(CommentError):
    """Exception raised when comment content or paging input is invalid."""

    pass


class StoreUnavailableError(CommentError):
    """Transient failure of the comment store (timeout or lost connection).

    Safe to retry for reads and deletes.
    """

    pass
