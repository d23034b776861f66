"""Bundled flashcard decks and test bank."""
