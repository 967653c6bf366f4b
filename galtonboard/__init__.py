"""Galton board simulation on an SSD1306-style monochrome framebuffer."""

__version__ = "0.1.0"