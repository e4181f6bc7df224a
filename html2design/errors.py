"""Exception types raised by the capture and mapping stages."""


class Html2DesignError(Exception):
    """Base class for every error raised by html2design."""


class CaptureError(Html2DesignError):
    """Raised when the rendering surface cannot be created or serialized."""


class MappingError(Html2DesignError):
    """Raised when a snapshot cannot be turned into a design tree."""


class FontLoadError(Html2DesignError):
    """Raised by a host when a family/style combination cannot be loaded."""


class ImageDecodeError(Html2DesignError):
    """Raised by a host when image bytes cannot be registered."""


class VectorImportError(Html2DesignError):
    """Raised by a host when vector markup cannot be imported."""
