"""tablecast — normalize semi-structured survey documents into chart-ready datasets."""

__version__ = "0.1.0"
