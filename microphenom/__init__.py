"""MicroPhenom - micro-phenomenological interview recorder and analyzer."""

__version__ = "0.1.0"
