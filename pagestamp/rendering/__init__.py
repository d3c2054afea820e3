"""PDF and SVG backends plus their shared resources."""
