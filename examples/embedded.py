"""
Embedded Example

Runs a request through the file service without opening any socket, as a
host that invokes the handler once per request would.

Usage:
    python embedded.py ROOT PATH
"""

import sys

from httpfs import FileService
from httpfs.bridge import run

if __name__ == "__main__":
	root: str = sys.argv[1] if len(sys.argv) > 1 else "."
	path: str = sys.argv[2] if len(sys.argv) > 2 else "/"
	bridge = run(FileService(root))
	sys.stdout.buffer.write(
		bridge.request(f"GET {path} HTTP/1.1\r\nHost: localhost\r\n\r\n".encode())
	)

# EOF
