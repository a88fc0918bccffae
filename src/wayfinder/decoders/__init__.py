"""Decoders for the individual AlpineQuest file formats."""
