from pathlib import Path

DEFAULT_CONTENT_TYPE: str = "application/octet-stream"

# NOTE: Extensions are matched exactly, `INDEX.HTML` is served as binary.
CONTENT_TYPES: dict[str, str] = {
	"html": "text/html; charset=utf-8",
	"css": "text/css; charset=utf-8",
	"js": "text/javascript; charset=utf-8",
	"json": "application/json",
	"png": "image/png",
	"jpg": "image/jpeg",
	"jpeg": "image/jpeg",
	"gif": "image/gif",
}


def extension(path: Path | str) -> str | None:
	"""Returns the text after the last dot of the file name, or `None` when
	the name has no extension. Dotfiles like `.profile` have no extension."""
	name: str = Path(path).name
	i: int = name.rfind(".")
	return name[i + 1 :] if i > 0 else None


def contentType(path: Path | str) -> str:
	"""Guesses the content type from the given path"""
	ext = extension(path)
	return (
		CONTENT_TYPES.get(ext, DEFAULT_CONTENT_TYPE)
		if ext is not None
		else DEFAULT_CONTENT_TYPE
	)


# EOF
