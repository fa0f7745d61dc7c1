"""autosub - load existing subtitles for the playing media, or download them."""

__version__ = "0.1.0"
