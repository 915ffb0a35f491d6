"""PDF document access and the two placement strategies."""
