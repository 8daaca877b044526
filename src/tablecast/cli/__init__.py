"""tablecast command-line interface."""
