from .file import FileTerminus
from .memory import MemoryTerminus

__all__ = ["FileTerminus", "MemoryTerminus"]
