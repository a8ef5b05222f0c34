"""Document loader implementations."""
from .text_loader import TextLoader

__all__ = ["TextLoader"]
