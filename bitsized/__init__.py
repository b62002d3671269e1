"""Fixed-width unsigned integers, bit-sized enums and bit layouts of composite field types."""

__version__ = "0.2.0"