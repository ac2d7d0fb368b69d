"""Box Management - personal inventory of storage boxes."""
