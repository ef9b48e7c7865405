"""Command-line surface: argparse router and plain-text frame rendering."""
