"""Program substrates."""
