from .publisher import (
    FailureResult,
    PostToEntry,
    PostToOptions,
    Publisher,
    Result,
    SuccessResult,
)
from .strategy import MAX_IMAGES, ImageEmbed, PostOptions, ProvidesPostUrl, Strategy

__all__ = [
    "FailureResult",
    "ImageEmbed",
    "MAX_IMAGES",
    "PostOptions",
    "PostToEntry",
    "PostToOptions",
    "ProvidesPostUrl",
    "Publisher",
    "Result",
    "Strategy",
    "SuccessResult",
]
