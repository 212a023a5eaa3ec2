"""audio-tagger - local audio library indexer with ordered, persistent playlists."""

__version__ = "0.1.0"
