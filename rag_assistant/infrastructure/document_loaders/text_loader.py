from pathlib import Path


class TextLoader:

    EXTENSIONS = {".md", ".markdown"}

    def __init__(self, extensions: set[str] | None = None):
        self._extensions = {e.lower() for e in (extensions or self.EXTENSIONS)}

    @property
    def extensions(self) -> set[str]:
        return self._extensions

    def supports(self, file_path: Path) -> bool:
        return file_path.suffix.lower() in self._extensions

    def load(self, file_path: Path) -> str:
        text = file_path.read_text(encoding="utf-8")
        return text.replace("\r\n", "\n")
