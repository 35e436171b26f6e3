"""KickCount - live speech transcription with a commentary keyword tally."""

__version__ = "0.1.0"
