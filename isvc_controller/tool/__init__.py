"""Command line tool for isvc-controller."""
