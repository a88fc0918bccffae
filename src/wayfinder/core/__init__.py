"""Core decoding model for AlpineQuest files."""
