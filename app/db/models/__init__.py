# app/db/models/__init__.py
from .org import Org
from .video import Video
from .gallery import Gallery, GalleryVideo
from .comment import Comment
from .share_link import ShareLink

__all__ = ["Org", "Video", "Gallery", "GalleryVideo", "Comment", "ShareLink"]
