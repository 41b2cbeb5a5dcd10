from fastapi import APIRouter, Depends, status

from chirp.core.auth import require_caller_id
from chirp.core.container import get_post_creator, get_post_lister
from chirp.schemas.post import CreatePostRequest, EnrichedPost, PostOut
from chirp.services.post_creator import PostCreator
from chirp.services.post_lister import PostLister

router = APIRouter(tags=["Posts"])


@router.get("/posts", response_model=list[EnrichedPost])
async def list_posts(
    lister: PostLister = Depends(get_post_lister),
) -> list[EnrichedPost]:
    """List the most recent posts with their authors.

    Public endpoint. Returns at most 100 posts, newest first.

    Raises:
        DataIntegrityAppError: 500 if any post's author cannot be resolved;
            no partial list is ever returned.
    """
    return await lister.list_posts()


@router.post(
    "/posts",
    response_model=PostOut,
    status_code=status.HTTP_201_CREATED,
)
async def create_post(
    body: CreatePostRequest,
    caller_id: str = Depends(require_caller_id),
    creator: PostCreator = Depends(get_post_creator),
) -> PostOut:
    """Create an emoji-only post owned by the signed-in caller.

    The body is validated before this handler runs (400 on failure).

    Raises:
        RateLimitAppError: 429 after 3 posts within a sliding minute.
    """
    return await creator.create_post(caller_id, body.content)
