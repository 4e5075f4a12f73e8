from .font_utils import FONT_FALLBACKS, resolve_font_variant

__all__ = ["FONT_FALLBACKS", "resolve_font_variant"]
