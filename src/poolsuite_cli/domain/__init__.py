"""Domain layer - catalogue access and playback orchestration."""
