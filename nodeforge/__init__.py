"""nodeforge -- interactive scaffolding for TypeScript Node.js backends."""

__version__ = "0.3.0"
