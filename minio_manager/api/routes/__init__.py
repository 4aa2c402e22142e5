"""Route modules for the local shell."""
