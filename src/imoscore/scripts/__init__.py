"""Entry points batch."""
