"""Terminal interface: argparse commands rendered with rich."""
