from chirp.models.base import Base
from chirp.models.post import Post

__all__ = ["Base", "Post"]
