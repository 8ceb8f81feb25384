"""Graphical user interface components for the serial plotter."""
