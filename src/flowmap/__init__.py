"""Interactive world map of data transfers between geographic locations."""
