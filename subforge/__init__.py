"""
Subforge - generated subtitle tracks for media libraries.

Produces sidecar subtitles for video files through a four-stage pipeline:
audio extraction → transcription → sidecar persistence → catalog
metadata refresh.
"""

__version__ = "0.1.0"
