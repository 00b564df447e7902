"""tar2zip - convert tar archives and compressed files into zip archives."""

__version__ = "1.0.0"
