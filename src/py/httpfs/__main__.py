import argparse

from .config import HOST, PORT, ROOT
from .server import run
from .services.files import FileService
from .utils.logging import info


def parseArgs(args: list[str] | None = None) -> argparse.Namespace:
	parser = argparse.ArgumentParser(
		prog="httpfs", description="Serves static files from a directory"
	)
	parser.add_argument("--host", default=HOST)
	parser.add_argument("--port", type=int, default=PORT)
	parser.add_argument("--root", default=ROOT, help="Directory to serve files from")
	return parser.parse_args(args)


def main(args: list[str] | None = None) -> None:
	options = parseArgs(args)
	service = FileService(options.root)
	info("Starting HTTPFS static file server", Root=str(service.root))
	run(service, host=options.host, port=options.port)


if __name__ == "__main__":
	main()

# EOF
