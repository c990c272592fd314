"""Building blocks for an image-processing HTTP server: signatures, geometry, codecs, routing."""

__version__ = "3.6.0"