"""
Content-addressed rendering of diagram blocks.

Usage::

    from docfeed.assets import AssetCache, D2Renderer, RenderGateway

    gateway = RenderGateway(D2Renderer(), AssetCache(".docfeed/tmp"))
    reference = await gateway.ensure_rendered("a -> b")
"""

from docfeed.assets.cache import DEFAULT_CACHE_DIR, AssetCache
from docfeed.assets.gateway import RENDER_CONCURRENCY, RenderGateway
from docfeed.assets.hashing import content_hash
from docfeed.assets.markdown import rewrite_diagrams, rewrite_directory, rewrite_file
from docfeed.assets.renderers import D2_CONFIG, D2Renderer, KrokiRenderer, make_renderer
from docfeed.assets.types import Renderer, RenderError, RenderResult

__all__ = [
    "D2_CONFIG",
    "DEFAULT_CACHE_DIR",
    "RENDER_CONCURRENCY",
    "AssetCache",
    "D2Renderer",
    "KrokiRenderer",
    "RenderError",
    "RenderGateway",
    "RenderResult",
    "Renderer",
    "content_hash",
    "make_renderer",
    "rewrite_diagrams",
    "rewrite_directory",
    "rewrite_file",
]
