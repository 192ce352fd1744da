"""Printed page number recovery and neighbour based repair."""
