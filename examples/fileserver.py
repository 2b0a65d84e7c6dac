"""
Static File Server Example

Serves the files of a directory, the way a container would serve its
`/assets` mount.

Usage:
    python fileserver.py [ROOT]

Test with:
    curl -i http://localhost:8000/            # Serves ROOT/index.html
    curl -I http://localhost:8000/app.js      # Headers only
    curl -i -X POST http://localhost:8000/    # 405 Method Not Allowed
"""

import sys

from httpfs import FileService, run
from httpfs.utils.logging import info

if __name__ == "__main__":
	service = FileService(sys.argv[1] if len(sys.argv) > 1 else ".")
	info("Starting static file server", Root=str(service.root))
	run(service)

# EOF
