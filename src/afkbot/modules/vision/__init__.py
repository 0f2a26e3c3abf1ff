from .assets import template_path
from .template import DEFAULT_THRESHOLD, Match, TemplateMatcher, match_template
from .utils import load_image, pixel_at, to_gray

__all__ = [
    "template_path",
    "DEFAULT_THRESHOLD",
    "Match",
    "TemplateMatcher",
    "match_template",
    "load_image",
    "pixel_at",
    "to_gray",
]
