from .document import Document
from .file import File
from .settings import Settings
from .site import Site


__all__ = ("Document", "File", "Settings", "Site")
